"""
Roku device control and discovery API routes
"""

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Awaitable, Dict, Optional
import logging

from roku import RemoteError, ValidationError

logger = logging.getLogger(__name__)

# Request models
class KeypressRequest(BaseModel):
    key: Optional[str] = None

class TextRequest(BaseModel):
    text: Optional[str] = None

class LaunchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app_id: Optional[str] = Field(None, alias="appId")


def _require(value: Optional[str], message: str) -> str:
    if not value:
        raise ValidationError(message)
    return value


def create_device_routes(ecp_client, discovery, discovery_config: Dict, debug: bool = False):
    """Create device control routes"""
    router = APIRouter(prefix="/api", tags=["devices"])
    max_timeout_ms = discovery_config.get('max_timeout_ms', 30000)

    async def run(action: str, address: str, operation: Awaitable[Any]) -> Any:
        try:
            return await operation
        except RemoteError as e:
            logger.warning(f"{action} failed for {address}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error during {action} for {address}: {e}")
            raise RemoteError(str(e) if debug else "Internal server error")

    @router.get("/devices/discover")
    async def discover_devices(timeout: Optional[int] = None):
        """Scan the network for Roku devices"""
        if timeout is not None and not 0 < timeout <= max_timeout_ms:
            raise ValidationError(f"timeout must be between 1 and {max_timeout_ms} ms")
        devices = await discovery.discover(timeout)
        return {"success": True, "devices": devices}

    @router.get("/device/{address}/info")
    async def get_device_info(address: str):
        data = await run("device info", address, ecp_client.get_device_info(address))
        return {"success": True, "data": data}

    @router.get("/device/{address}/apps")
    async def list_apps(address: str):
        data = await run("app list", address, ecp_client.get_apps(address))
        return {"success": True, "data": data}

    @router.get("/device/{address}/active")
    async def get_active_app(address: str):
        """Null data means the home screen is active"""
        data = await run("active app", address, ecp_client.get_active_app(address))
        return {"success": True, "data": data}

    @router.post("/device/{address}/keypress")
    async def send_keypress(address: str, request: KeypressRequest = KeypressRequest()):
        key = _require(request.key, "Key is required")
        await run("keypress", address, ecp_client.keypress(address, key))
        return {"success": True}

    @router.post("/device/{address}/text")
    async def send_text(address: str, request: TextRequest = TextRequest()):
        text = _require(request.text, "Text is required")
        await run("text entry", address, ecp_client.send_text(address, text))
        return {"success": True}

    @router.post("/device/{address}/launch")
    async def launch_app(address: str, request: LaunchRequest = LaunchRequest()):
        app_id = _require(request.app_id, "appId is required")
        await run("app launch", address, ecp_client.launch_app(address, app_id))
        return {"success": True}

    @router.get("/device/{address}/media")
    async def get_media_state(address: str):
        data = await run("media state", address, ecp_client.get_media_state(address))
        return {"success": True, "data": data}

    return router
