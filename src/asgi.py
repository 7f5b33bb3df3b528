"""
ASGI entry point for uvicorn
This module exposes the FastAPI app for use with uvicorn command line
"""

import logging

from config_loader import load_config, setup_logging
from api.main_api import RemoteAPI

# Load configuration (CONFIG_FILE or config/config.yaml)
config = load_config()
setup_logging(config)

logger = logging.getLogger(__name__)

logger.info("Initializing application components...")

api = RemoteAPI(config)

# Expose the FastAPI app for uvicorn
app = api.app

logger.info("ASGI app ready for uvicorn")
