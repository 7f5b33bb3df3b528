"""
Multicast DNS query listener
Owns the UDP socket used for one discovery session; the zeroconf codec handles the wire format
"""

import asyncio
import logging
import socket
import struct
from typing import Callable, List, Optional

from zeroconf import DNSAddress, DNSIncoming, DNSOutgoing, DNSPointer, DNSQuestion, DNSService, DNSText
from zeroconf.const import _CLASS_IN, _FLAGS_QR_QUERY, _MDNS_ADDR, _MDNS_PORT, _TYPE_PTR

from .models import MdnsRecord

logger = logging.getLogger(__name__)

RecordsCallback = Callable[[List[MdnsRecord]], None]
ErrorCallback = Callable[[Exception], None]


def build_query(service_names: List[str]) -> List[bytes]:
    """Encode one multicast query with a PTR question per service name"""
    out = DNSOutgoing(_FLAGS_QR_QUERY, True)
    for service_name in service_names:
        if not service_name.endswith('.'):
            service_name += '.'
        out.add_question(DNSQuestion(service_name, _TYPE_PTR, _CLASS_IN))
    return out.packets()


def _record_data(record) -> Optional[str]:
    if isinstance(record, DNSAddress):
        if len(record.address) != 4:
            return None  # IPv6 addresses are not used for ECP
        return socket.inet_ntoa(record.address)
    if isinstance(record, DNSPointer):
        return record.alias
    if isinstance(record, DNSService):
        return record.server
    if isinstance(record, DNSText):
        return record.text.decode('utf-8', errors='replace')
    return None


def parse_response(data: bytes) -> Optional[List[MdnsRecord]]:
    """
    Decode answer and additional records of an mDNS response.
    Returns None for queries and packets that fail to parse.
    """
    incoming = DNSIncoming(data)
    if not incoming.valid or not incoming.is_response():
        return None
    return [MdnsRecord(name=record.name, type=record.type, data=_record_data(record))
            for record in incoming.answers()]


class MdnsQueryProtocol(asyncio.DatagramProtocol):
    """Feed decoded responses and socket errors to the discovery session"""

    def __init__(self, on_records: RecordsCallback, on_error: ErrorCallback):
        self.on_records = on_records
        self.on_error = on_error
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        records = parse_response(data)
        if records:
            logger.debug(f"mDNS response from {addr[0]} with {len(records)} records")
            self.on_records(records)

    def error_received(self, exc: Exception) -> None:
        self.on_error(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is not None:
            self.on_error(exc)


class MdnsListener:
    """Multicast socket bound for the lifetime of one discovery session"""

    def __init__(self, listen_port: int = _MDNS_PORT, interface: str = '0.0.0.0'):
        self.listen_port = listen_port
        self.interface = interface
        self.transport: Optional[asyncio.DatagramTransport] = None

    async def open(self, on_records: RecordsCallback, on_error: ErrorCallback) -> None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if hasattr(socket, 'SO_REUSEPORT'):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            sock.bind(('', self.listen_port))

            # Join the mDNS group so multicast answers reach this socket
            mreq = struct.pack("=4s4s", socket.inet_aton(_MDNS_ADDR), socket.inet_aton(self.interface))
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 255)
            sock.setblocking(False)

            loop = asyncio.get_running_loop()
            self.transport, _ = await loop.create_datagram_endpoint(
                lambda: MdnsQueryProtocol(on_records, on_error),
                sock=sock,
            )
        except Exception:
            sock.close()
            raise
        logger.debug(f"mDNS listener bound on UDP {self.listen_port}")

    def send_query(self, service_names: List[str]) -> None:
        if self.transport is None:
            raise RuntimeError("mDNS listener is not open")
        logger.info(f"Sending mDNS query for {', '.join(service_names)}")
        for packet in build_query(service_names):
            self.transport.sendto(packet, (_MDNS_ADDR, _MDNS_PORT))

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()
            self.transport = None
