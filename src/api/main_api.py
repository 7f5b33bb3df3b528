"""
Local HTTP API for the Roku remote
Relays remote-control commands to devices over ECP and exposes mDNS discovery
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from discovery import RokuDiscovery
from roku import RokuEcpClient, RemoteError

from .device_routes import create_device_routes
from .system_routes import create_system_routes

logger = logging.getLogger(__name__)


def build_origin_regex(patterns: List[str]) -> Optional[str]:
    """'http://localhost:*' -> 'http://localhost:.*'; patterns are OR-ed and matched in full"""
    parts = ['.*'.join(re.escape(piece) for piece in pattern.split('*')) for pattern in patterns]
    if not parts:
        return None
    return '|'.join(f'(?:{part})' for part in parts)


class RemoteAPI:
    """Local HTTP API for Roku remote control and discovery"""

    def __init__(self, config: Dict, ecp_client: RokuEcpClient = None, discovery: RokuDiscovery = None):
        self.config = config
        self.ecp = ecp_client or RokuEcpClient(config.get('ecp', {}))
        self.discovery = discovery or RokuDiscovery(config.get('discovery', {}))
        self.app = FastAPI(
            title="Roku Local Remote Server",
            description="Local API relaying remote-control commands to Roku devices over ECP",
            version="1.0.0"
        )
        self._setup_cors()
        self._setup_error_handlers()
        self._setup_routes()
        self._setup_frontend()

    def _setup_cors(self):
        patterns = self.config.get('cors', {}).get('allowed_origins', [])
        self.app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=build_origin_regex(patterns),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.info(f"CORS allowed origins: {', '.join(patterns) or '(none)'}")

    def _setup_error_handlers(self):
        """Every failure leaves the API as {success: false, error}"""

        @self.app.exception_handler(RemoteError)
        async def remote_error_handler(request: Request, exc: RemoteError):
            return JSONResponse(
                status_code=exc.status_code,
                content={"success": False, "error": exc.message}
            )

        @self.app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            errors = exc.errors()
            message = errors[0].get('msg', 'Invalid request') if errors else 'Invalid request'
            logger.warning(f"Rejected request to {request.url.path}: {message}")
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": message}
            )

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        debug = self.config.get('server', {}).get('debug', False)
        system_router = create_system_routes(self.config)
        device_router = create_device_routes(self.ecp, self.discovery, self.config.get('discovery', {}), debug)

        self.app.include_router(system_router)
        self.app.include_router(device_router)

    def _setup_frontend(self):
        """Serve a prebuilt frontend, if configured, after the API routes"""
        static_dir = self.config.get('frontend', {}).get('static_dir')
        if static_dir and Path(static_dir).is_dir():
            self.app.mount("/", StaticFiles(directory=static_dir, html=True), name="frontend")
            logger.info(f"Serving frontend from {static_dir}")
