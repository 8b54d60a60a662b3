"""Envelope request handler.

Requests and responses travel as AES-CBC envelopes; the response body is
authenticated with an HMAC tag sent in a header.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from licshim.common.crypto import CryptoUtils
from licshim.common.models import (
    CommonResponse,
    EnvelopePayload,
    EnvelopeRequest,
    GetVariableRequest,
    HandshakeRequest,
    HandshakeResponse,
    LoginRequest,
    LoginResponse,
    parse_envelope_request,
)
from licshim.common.signing import hmac_tag

if TYPE_CHECKING:
    from licshim.common.config import EnvelopeSettings


class EnvelopeHandler:
    """Decrypts, dispatches and seals envelope requests."""

    def __init__(self, settings: EnvelopeSettings):
        self.settings = settings
        self.aes_key = CryptoUtils.decode_hex(settings.aes_key)
        self.logger = logging.getLogger(__name__)

    def handle(self, payload: str) -> tuple[bytes, str]:
        """Return the sealed response body and its signature tag."""
        request = parse_envelope_request(
            CryptoUtils.decrypt_envelope(payload, self.aes_key)
        )
        self.logger.debug("Envelope request kind=%s", request.kind)

        response = self._build_response(request)
        sealed = CryptoUtils.encrypt_envelope(response.to_json(), self.aes_key)
        body = EnvelopePayload(payload=sealed).to_json().encode("utf-8")
        return body, hmac_tag(body, self.settings.hmac_key, request.sessionid)

    def _build_response(self, request: EnvelopeRequest) -> CommonResponse:
        common = {"message": "", "success": True, "sync_key": request.sync_key}
        if isinstance(request, HandshakeRequest):
            return HandshakeResponse(**common, sessionid=request.enckey)
        if isinstance(request, LoginRequest):
            return LoginResponse(
                **common,
                time_left=self.settings.time_left,
                sub_level=self.settings.sub_level,
            )
        if isinstance(request, GetVariableRequest):
            common["message"] = CryptoUtils.obscure_variable(
                self.settings.variable_data.encode("utf-8"),
                request.cid,
                self.settings.xor_key,
            )
        return CommonResponse(**common)
