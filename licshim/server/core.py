"""
License shim server using FastAPI.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from licshim.common.config import Config, Settings
from licshim.common.logging_utils import setup_logger

from .routes import ShimRoutes


class LicenseShimServer:
    """Main server class wiring configuration, handlers and routes."""

    def __init__(
        self,
        config: Config | None = None,
        settings: Settings | None = None,
        log_level: int | None = None,
    ):
        self.config = config or Config()
        self.logger = logging.getLogger(__name__)
        setup_logger(
            logging.getLogger("licshim"),
            log_level if log_level is not None else self.config.LOG_LEVEL,
            self.config.LOG_FILE,
        )
        # Loaded once; handlers only ever read it.
        self.settings = (
            settings if settings is not None else self.config.load_settings()
        )
        self.server_host = self.config.SERVER_HOST
        self.server_port = self.config.SERVER_PORT

        self.app = FastAPI(title="licshim")
        self.routes = ShimRoutes(self.config, self.settings)
        self.routes.setup_routes(self.app)

        sections = self.settings.enabled_sections()
        self.logger.info("Enabled sections: %s", ", ".join(sections) or "none")
        self.logger.info(
            "Server configured for http://%s:%s", self.server_host, self.server_port
        )
