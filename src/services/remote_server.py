"""
Remote Server - Main orchestrator for the Roku remote API
"""

import logging
from typing import Optional

import uvicorn

from config_loader import load_config, setup_logging
from api.main_api import RemoteAPI

logger = logging.getLogger(__name__)

class RemoteServer:
    """Loads configuration, builds the API and serves it with uvicorn"""

    def __init__(self, config_path: Optional[str] = None):
        self.config = load_config(config_path)
        setup_logging(self.config)

        self.api = RemoteAPI(self.config)
        self._server: Optional[uvicorn.Server] = None

    async def start(self):
        """Start the HTTP API server and block until it exits"""
        logger.info("Starting Roku Local Remote Server...")

        discovery = self.config['discovery']
        logger.info(f"Discovery defaults: timeout={discovery['timeout_ms']}ms, "
                    f"max_devices={discovery['max_devices']}, "
                    f"bare address records {'accepted' if discovery['accept_bare_address_records'] else 'ignored'}")
        logger.info(f"ECP requests: port {self.config['ecp']['port']}, timeout {self.config['ecp']['timeout_ms']}ms")

        await self._start_api_server()

    async def stop(self):
        """Ask uvicorn to finish in-flight requests and exit"""
        logger.info("Stopping server...")
        if self._server:
            self._server.should_exit = True

    async def _start_api_server(self):
        """Start the FastAPI server"""
        server_config = self.config['server']
        config = uvicorn.Config(
            self.api.app,
            host=server_config['host'],
            port=server_config['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )

        self._server = uvicorn.Server(config)

        logger.info(f"Starting API server on {server_config['host']}:{server_config['port']}")
        logger.info(f"API available at http://localhost:{server_config['port']}/api")
        logger.info(f"API documentation: http://localhost:{server_config['port']}/docs")

        await self._server.serve()
        logger.info("Server stopped")
