"""Keyfile and checksummed record handler.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from licshim.common.exceptions import EnvelopeError, ParseError
from licshim.common.keyfile import KeyData, KeyFile, RawKeyFile
from licshim.common.models import (
    ChangelogRecord,
    ChecksumResponse,
    RecordT,
    StatusRecord,
)

if TYPE_CHECKING:
    from licshim.common.config import Config, KeyfileSettings


class KeyfileHandler:
    """Exports keyfiles and serves salted-checksum records."""

    def __init__(self, config: Config, settings: KeyfileSettings):
        self.config = config
        self.settings = settings
        self.logger = logging.getLogger(__name__)

    def keyfile_for(self, hwid: str) -> RawKeyFile:
        """Export a keyfile bound to ``hwid`` with the configured defaults."""
        keyfile = KeyFile(
            checksum=self.settings.checksum,
            rsa_key=self.settings.rsa_key,
            data=KeyData(
                user_id=self.settings.user_id,
                hwid=hwid,
                role=self.settings.role,
                cardstr=self.settings.cardstr,
                data_id=self.settings.data_id,
                expiry_time=self.settings.expiry_time,
            ),
        )
        self.logger.info("Exporting keyfile for hwid %s", hwid)
        try:
            return keyfile.export()
        except EnvelopeError as err:
            # The payload grows with the caller's hwid; RSA caps its size.
            msg = "keyfile payload rejected"
            raise ParseError(msg) from err

    def status(self, hwid_uid: str) -> ChecksumResponse[StatusRecord]:
        """Build the status record for a ``<hwid>:<uid>`` path segment."""
        hwid, sep, uid = hwid_uid.partition(":")
        if not sep or not (uid.isascii() and uid.isdigit()):
            msg = "status path must be <hwid>:<uid>"
            raise ParseError(msg)

        try:
            record = self._status_record(hwid, int(uid))
        except ValidationError as err:
            msg = "status record rejected"
            raise ParseError(msg) from err
        return self._signed(record)

    def _status_record(self, hwid: str, uid: int) -> StatusRecord:
        template = self.settings.status
        return StatusRecord(
            creation_time=template.creation_time,
            updated_by=template.updated_by,
            update_time=template.update_time,
            remark=template.remark,
            id=uid,
            role_value=template.role_value,
            expiry_time=template.expiry_time,
            last_login_time=template.last_login_time,
            hwid=hwid,
            file_md5=self.settings.checksum,
            reset_num=template.reset_num,
        )

    def changelog(self) -> ChecksumResponse[ChangelogRecord] | None:
        if self.settings.changelog is None:
            return None
        return self._signed(self.settings.changelog, self.config.CHANGELOG_MESSAGE)

    def _signed(
        self, record: RecordT, message: str | None = None
    ) -> ChecksumResponse[RecordT]:
        return ChecksumResponse[type(record)](  # type: ignore[misc]
            msg=message if message is not None else self.config.RECORD_MESSAGE,
            code=self.config.RECORD_CODE,
            data=record,
            signature=record.get_sig(self.settings.salt),
        )
