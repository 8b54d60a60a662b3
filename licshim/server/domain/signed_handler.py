"""RSA signed document handler.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING

from licshim.common.models import HwidResponse, SignedUser, UserRecord
from licshim.common.signing import load_rsa_private_key, rsa_sign

if TYPE_CHECKING:
    from licshim.common.config import SignedSettings

# Clients append a four character suffix to the identifier in the path.
PATH_SUFFIX_LEN = 4
NONCE_BYTES = 16


class SignedHandler:
    """Signs user records and hardware challenges with the configured RSA key."""

    def __init__(self, settings: SignedSettings):
        self.settings = settings
        self.private_key = load_rsa_private_key(settings.rsa_key)
        self.logger = logging.getLogger(__name__)

    def _user_by_id(self, uid: str) -> UserRecord | None:
        return next((u for u in self.settings.users if u.id == uid), None)

    def _user_by_hwid(self, hwid: str) -> UserRecord | None:
        return next((u for u in self.settings.users if u.hwid == hwid), None)

    @staticmethod
    def _strip_suffix(value: str) -> str | None:
        if len(value) < PATH_SUFFIX_LEN:
            return None
        return value[:-PATH_SUFFIX_LEN]

    def key_document(self, uid: str) -> SignedUser | None:
        """Return the user record with a signature over its compact JSON."""
        user = self._user_by_id(uid)
        if user is None:
            return None
        return SignedUser(data=user, sig=rsa_sign(user.to_json(), self.private_key))

    def verify_hwid(self, hwid_suffixed: str) -> HwidResponse | None:
        """Sign ``"<username>;<nonce>"`` for the user bound to a hardware id."""
        hwid = self._strip_suffix(hwid_suffixed)
        user = self._user_by_hwid(hwid) if hwid is not None else None
        if user is None:
            self.logger.info("No user for hardware id")
            return None
        # Clients only verify the signature over msg, never the nonce format.
        msg = f"{user.username};{secrets.token_hex(NONCE_BYTES)}"
        return HwidResponse(msg=msg, sig=rsa_sign(msg, self.private_key))

    def signature_for(self, uid_suffixed: str) -> str | None:
        uid = self._strip_suffix(uid_suffixed)
        document = self.key_document(uid) if uid is not None else None
        return document.sig if document is not None else None
