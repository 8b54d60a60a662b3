"""Tagged JSON request handler.

Plain JSON responses per application instance, authenticated with an HMAC
tag keyed by the instance secret and the caller's session id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from licshim.common.exceptions import ParseError
from licshim.common.models import (
    BasicResponse,
    InitResponse,
    LicenseInfo,
    LicenseResponse,
    WireModel,
)
from licshim.common.signing import hmac_tag

if TYPE_CHECKING:
    from licshim.common.config import TaggedInstance, TaggedSettings


class TaggedHandler:
    """Answers tagged requests for the configured application instances."""

    def __init__(self, settings: TaggedSettings, nonce: str):
        self.settings = settings
        self.nonce = nonce
        self.logger = logging.getLogger(__name__)

    def find_instance(self, name: str, ownerid: str) -> TaggedInstance | None:
        for instance in self.settings.instances:
            if instance.app == name and instance.owner == ownerid:
                return instance
        return None

    def handle(
        self,
        instance: TaggedInstance,
        kind: str,
        enckey: str | None = None,
        sessionid: str | None = None,
    ) -> tuple[bytes, dict[str, str]]:
        """Return the response body and its ``signature``/``handler`` headers."""
        self.logger.info("Tagged request kind=%s for %s", kind, instance.display_name)
        response = self._build_response(instance, kind, enckey)
        body = response.to_json().encode("utf-8")
        headers = {
            "signature": hmac_tag(body, instance.secret, sessionid),
            "handler": instance.display_name,
        }
        return body, headers

    def _build_response(
        self, instance: TaggedInstance, kind: str, enckey: str | None
    ) -> WireModel:
        if kind == "init":
            if enckey is None:
                msg = "init request without enckey"
                raise ParseError(msg)
            return InitResponse(success=True, nonce=self.nonce, sessionid=enckey)
        if kind == "checkblacklist":
            # success=false means the caller is not blacklisted
            return BasicResponse(success=False, nonce=self.nonce)
        if kind == "license":
            return LicenseResponse(
                success=True,
                nonce=self.nonce,
                info=instance.license_info or LicenseInfo(),
            )
        return BasicResponse(success=True, nonce=self.nonce)
