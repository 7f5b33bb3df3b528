"""
Discovery manager for Roku devices on the local network
Runs one bounded mDNS session: finishes on deadline, device cap, or listener error
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional

from .mdns_listener import MdnsListener
from .models import DiscoveryResult, DiscoverySession

logger = logging.getLogger(__name__)


class RokuDiscovery:
    """Main discovery service for Roku devices"""

    def __init__(self, config: Dict, listener_factory: Optional[Callable[[], MdnsListener]] = None):
        self.config = config
        self.timeout_ms = config.get('timeout_ms', 5000)
        self.max_devices = config.get('max_devices', 10)
        self.service_names = config.get('service_names', ['_ecp-server._tcp.local.', '_http._tcp.local.'])
        self.service_marker = config.get('service_marker', 'Roku')
        self.accept_bare_address_records = config.get('accept_bare_address_records', True)
        self._listener_factory = listener_factory or (
            lambda: MdnsListener(listen_port=config.get('listen_port', 5353))
        )

    async def discover(self, timeout_ms: Optional[int] = None, max_devices: Optional[int] = None) -> List[Dict]:
        """Return normalized devices found within the time window; never raises"""
        result = await self.run_discovery(timeout_ms, max_devices)
        return result.devices

    async def run_discovery(self, timeout_ms: Optional[int] = None,
                            max_devices: Optional[int] = None) -> DiscoveryResult:
        timeout_ms = timeout_ms or self.timeout_ms
        max_devices = max_devices or self.max_devices
        timeout = timeout_ms / 1000

        loop = asyncio.get_running_loop()
        start_time = time.time()
        session = DiscoverySession(
            max_devices=max_devices,
            deadline=loop.time() + timeout,
            service_marker=self.service_marker,
            accept_bare_address_records=self.accept_bare_address_records,
        )
        finished: asyncio.Future = loop.create_future()

        def finish(reason: str) -> None:
            if not finished.done():
                finished.set_result(reason)

        def on_records(records) -> None:
            if finished.done():
                return
            known = len(session.directory)
            if session.add_records(records):
                finish("cap")
            if len(session.directory) > known:
                logger.info(f"Discovery: {len(session.directory)} device(s) so far")

        def on_error(exc: Exception) -> None:
            if not finished.done():
                logger.warning(f"mDNS listener error, returning partial results: {exc}")
            finish("error")

        logger.info(f"Starting Roku discovery (timeout={timeout_ms}ms, max_devices={max_devices})")
        listener = self._listener_factory()
        deadline_handle = loop.call_at(session.deadline, finish, "deadline")
        try:
            try:
                await listener.open(on_records, on_error)
                listener.send_query(self.service_names)
            except Exception as e:
                logger.error(f"mDNS discovery failed: {e}")
                finish("error")
            reason = await finished
        finally:
            deadline_handle.cancel()
            listener.close()

        devices = session.normalized_devices()
        duration = time.time() - start_time
        logger.info(f"Discovery finished ({reason}): {len(devices)} device(s) from "
                    f"{session.responses_seen} response(s) in {duration:.1f}s")
        if devices:
            logger.info(f"Discovered: {', '.join(d['address'] for d in devices)}")

        return DiscoveryResult(
            devices=devices,
            reason=reason,
            duration_seconds=duration,
            responses_seen=session.responses_seen
        )
