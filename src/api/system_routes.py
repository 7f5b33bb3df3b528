"""
System health API routes
"""

from fastapi import APIRouter
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

def create_system_routes(config):
    """Create system monitoring routes"""
    router = APIRouter(prefix="/api", tags=["system"])

    @router.get("/health")
    async def system_health():
        """System health check"""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    @router.get("/system/config")
    async def get_public_config():
        """Discovery defaults the frontend needs to build its requests"""
        discovery = config.get('discovery', {})
        return {
            "success": True,
            "data": {
                "discovery_timeout_ms": discovery.get('timeout_ms'),
                "max_timeout_ms": discovery.get('max_timeout_ms'),
                "max_devices": discovery.get('max_devices'),
                "ecp_port": config.get('ecp', {}).get('port')
            }
        }

    return router
