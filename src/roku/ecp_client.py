"""
Roku External Control Protocol (ECP) client
One outbound HTTP request per command; XML replies are mapped to plain records
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from http_helper import create_device_session
from .errors import DeviceTimeout, DeviceUnreachable, ProtocolError
from .xml_parsing import parse_active_app, parse_apps, parse_device_info, parse_media_state

logger = logging.getLogger(__name__)

ECP_PORT = 8060
LITERAL_PREFIX = "Lit_"

# encodeURIComponent leaves these unescaped; the device expects the same
_TEXT_SAFE_CHARS = "!~*'()"


class RokuEcpClient:
    """Translates remote-control commands into ECP requests against a device address"""

    def __init__(self, config: Optional[Dict] = None,
                 session_factory: Callable[[float], Any] = create_device_session):
        config = config or {}
        self.port = config.get('port', ECP_PORT)
        self.timeout_seconds = config.get('timeout_ms', 5000) / 1000
        self._session_factory = session_factory

    # ================== QUERIES ==================

    async def get_device_info(self, address: str) -> Dict[str, Optional[str]]:
        xml = await self._request('GET', address, '/query/device-info')
        return parse_device_info(xml)

    async def get_apps(self, address: str) -> List[Dict[str, Optional[str]]]:
        xml = await self._request('GET', address, '/query/apps')
        return parse_apps(xml)

    async def get_active_app(self, address: str) -> Optional[Dict[str, Optional[str]]]:
        """None means the home screen is active"""
        xml = await self._request('GET', address, '/query/active-app')
        return parse_active_app(xml)

    async def get_media_state(self, address: str) -> Dict[str, Any]:
        """
        Media state is not supported on every device, so any failure is reported
        as {"available": False, "error": ...} instead of being raised
        """
        try:
            xml = await self._request('GET', address, '/query/media-search')
            return parse_media_state(xml)
        except Exception as e:
            logger.info(f"Media state unavailable for {address}: {e}")
            return {"available": False, "error": str(e)}

    # ================== COMMANDS ==================

    async def keypress(self, address: str, key: str) -> None:
        await self._request('POST', address, f'/keypress/{key}')

    async def send_text(self, address: str, text: str) -> None:
        """Send the whole string as one literal keypress"""
        encoded = quote(text, safe=_TEXT_SAFE_CHARS)
        await self._request('POST', address, f'/keypress/{LITERAL_PREFIX}{encoded}')

    async def launch_app(self, address: str, app_id: str) -> None:
        await self._request('POST', address, f'/launch/{app_id}')

    # ================== TRANSPORT ==================

    def build_url(self, address: str, path: str) -> str:
        """Addresses without an explicit port get the ECP port appended"""
        host = address if ':' in address else f"{address}:{self.port}"
        return f"http://{host}{path}"

    async def _request(self, method: str, address: str, path: str) -> bytes:
        url = self.build_url(address, path)
        data = b'' if method == 'POST' else None
        logger.debug(f"ECP {method} {url}")

        try:
            async with self._session_factory(self.timeout_seconds) as session:
                async with session.request(method, url, data=data) as response:
                    if response.status >= 400:
                        logger.warning(f"ECP {method} {url} returned HTTP {response.status}")
                        raise ProtocolError(
                            f"Roku API error: {response.status} {response.reason or ''}".rstrip(),
                            status=response.status
                        )
                    return await response.read()

        except aiohttp.ClientConnectorDNSError:
            logger.warning(f"Cannot resolve Roku device address {address}")
            raise DeviceTimeout(
                f"Connection timeout to Roku device at {address}. Check network connectivity."
            )
        except aiohttp.ClientConnectorError as e:
            if not isinstance(e.os_error, ConnectionRefusedError):
                logger.warning(f"Connection to {address} failed: {e.os_error!r}")
            raise DeviceUnreachable(
                f"Cannot connect to Roku device at {address}. "
                "Check IP address and that device is powered on."
            )
        except asyncio.TimeoutError:
            logger.warning(f"ECP {method} {url} timed out after {self.timeout_seconds}s")
            raise DeviceTimeout(
                f"Connection timeout to Roku device at {address}. Check network connectivity."
            )
        except aiohttp.ClientError as e:
            logger.warning(f"ECP {method} {url} failed: {e!r}")
            raise ProtocolError(f"Invalid response from Roku device at {address}: {e}")
