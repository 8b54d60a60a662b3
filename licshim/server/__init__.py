"""
Entry point for the license shim server.
"""

import logging

import uvicorn

from licshim.common.config import Config

from .core import LicenseShimServer


def start_server(config: Config | None = None) -> None:
    """Start the license shim server."""
    if config is None:
        config = Config()
    logging.basicConfig(level=config.LOG_LEVEL)
    server = LicenseShimServer(config=config)
    uvicorn.run(server.app, host=server.server_host, port=server.server_port)
