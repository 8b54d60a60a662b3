"""
Routes for the license shim server.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import FastAPI, Form, HTTPException
from fastapi.responses import PlainTextResponse, Response

from licshim.common.exceptions import REQUEST_ERRORS

from .domain.envelope_handler import EnvelopeHandler
from .domain.keyfile_handler import KeyfileHandler
from .domain.signed_handler import SignedHandler
from .domain.tagged_handler import TaggedHandler

if TYPE_CHECKING:
    from licshim.common.config import Config, Settings


def json_response(body: bytes | str, headers: dict[str, str] | None = None) -> Response:
    """Send an already serialized body untouched, so signatures over it hold."""
    return Response(content=body, media_type="application/json", headers=headers)


class ShimRoutes:
    """Handles FastAPI routes for every enabled protocol section."""

    def __init__(self, config: Config, settings: Settings):
        self.config = config
        self.settings = settings
        self.logger = logging.getLogger(__name__)
        enabled = set(settings.enabled_sections())

        self.envelope_handler = (
            EnvelopeHandler(settings.envelope) if "envelope" in enabled else None
        )
        self.tagged_handler = (
            TaggedHandler(settings.tagged, config.CANNED_NONCE)
            if "tagged" in enabled
            else None
        )
        self.keyfile_handler = (
            KeyfileHandler(config, settings.keyfile) if "keyfile" in enabled else None
        )
        self.signed_handler = (
            SignedHandler(settings.signed) if "signed" in enabled else None
        )

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""

        app.get("/health")(self.health)
        if self.envelope_handler is not None:
            app.post("/envelope")(self.envelope)
        if self.tagged_handler is not None:
            app.post("/api/tagged")(self.tagged)
        if self.keyfile_handler is not None:
            app.get("/keyfile")(self.keyfile)
            app.get("/status/{hwid_uid}")(self.status)
            app.get("/changelog")(self.changelog)
        if self.signed_handler is not None:
            app.get("/users/{uid}/key.json")(self.user_key)
            app.get("/hwid/{hwid}")(self.verify_hwid)
            app.get("/sig/{uid}")(self.signature)

    def _reject(self, route: str, err: Exception) -> HTTPException:
        # Never echo why an untrusted request failed.
        self.logger.info("Rejected %s request: %s", route, type(err).__name__)
        return HTTPException(getattr(err, "status_code", 404))

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return {"status": "ok", "timestamp": int(time.time())}

    async def envelope(self, payload: Annotated[str, Form()]) -> Response:
        """Handle /envelope endpoint."""
        assert self.envelope_handler is not None
        try:
            body, signature = self.envelope_handler.handle(payload)
        except REQUEST_ERRORS as e:
            raise self._reject("envelope", e) from e
        return json_response(body, {"signature": signature})

    async def tagged(
        self,
        kind: Annotated[str, Form(alias="type")],
        name: Annotated[str, Form()],
        ownerid: Annotated[str, Form()],
        enckey: Annotated[str | None, Form()] = None,
        sessionid: Annotated[str | None, Form()] = None,
    ) -> Response:
        """Handle /api/tagged endpoint."""
        assert self.tagged_handler is not None
        instance = self.tagged_handler.find_instance(name, ownerid)
        if instance is None:
            raise HTTPException(404)
        try:
            body, headers = self.tagged_handler.handle(
                instance, kind, enckey=enckey, sessionid=sessionid
            )
        except REQUEST_ERRORS as e:
            raise self._reject("tagged", e) from e
        return json_response(body, headers)

    async def keyfile(self, hwid: str) -> Response:
        """Handle /keyfile endpoint."""
        assert self.keyfile_handler is not None
        try:
            artifact = self.keyfile_handler.keyfile_for(hwid)
        except REQUEST_ERRORS as e:
            raise self._reject("keyfile", e) from e
        return json_response(artifact.to_json())

    async def status(self, hwid_uid: str) -> Response:
        """Handle /status endpoint."""
        assert self.keyfile_handler is not None
        try:
            response = self.keyfile_handler.status(hwid_uid)
        except REQUEST_ERRORS as e:
            raise self._reject("status", e) from e
        return json_response(response.to_json())

    async def changelog(self) -> Response:
        """Handle /changelog endpoint."""
        assert self.keyfile_handler is not None
        response = self.keyfile_handler.changelog()
        if response is None:
            raise HTTPException(404)
        return json_response(response.to_json())

    async def user_key(self, uid: str) -> Response:
        """Handle /users/{uid}/key.json endpoint."""
        assert self.signed_handler is not None
        document = self.signed_handler.key_document(uid)
        if document is None:
            raise HTTPException(404)
        return json_response(document.to_json())

    async def verify_hwid(self, hwid: str) -> Response:
        """Handle /hwid endpoint."""
        assert self.signed_handler is not None
        response = self.signed_handler.verify_hwid(hwid)
        if response is None:
            raise HTTPException(404)
        return json_response(response.to_json())

    async def signature(self, uid: str) -> PlainTextResponse:
        """Handle /sig endpoint."""
        assert self.signed_handler is not None
        sig = self.signed_handler.signature_for(uid)
        if sig is None:
            raise HTTPException(404)
        return PlainTextResponse(sig)
