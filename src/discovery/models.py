"""
Discovery data structures and models
"""

from typing import Dict, List, Optional, Set
from dataclasses import dataclass, field

DEFAULT_ECP_PORT = 8060
DEVICE_KIND = "roku"
UNKNOWN_DEVICE_NAME = "Unknown Roku Device"

TYPE_A = 1
TYPE_PTR = 12
TYPE_TXT = 16
TYPE_SRV = 33


@dataclass(frozen=True)
class MdnsRecord:
    """One answer or additional record from an mDNS response"""
    name: str
    type: int
    data: Optional[str] = None  # A: dotted quad, PTR: alias, SRV: target host, TXT: text


@dataclass(frozen=True)
class DeviceDescriptor:
    """Represents a discovered Roku device, keyed by address"""
    address: str
    display_name: Optional[str] = None
    port: Optional[int] = DEFAULT_ECP_PORT
    kind: str = DEVICE_KIND

    def normalized(self) -> Dict:
        port = self.port or DEFAULT_ECP_PORT
        return {
            "address": self.address,
            "name": self.display_name or UNKNOWN_DEVICE_NAME,
            "port": port,
            "type": self.kind or DEVICE_KIND,
            "url": f"http://{self.address}:{port}",
        }


@dataclass
class DiscoveryResult:
    """Results from one discovery session"""
    devices: List[Dict]
    reason: str  # "deadline", "cap", "error"
    duration_seconds: float
    responses_seen: int


class DeviceDirectory:
    """Address -> last seen descriptor for a single discovery run"""

    def __init__(self):
        self._devices: Dict[str, DeviceDescriptor] = {}
        self._confirmed: Set[str] = set()

    def put(self, descriptor: DeviceDescriptor, provisional: bool = False) -> bool:
        """
        Store a descriptor, superseding any earlier one for the same address.
        A provisional entry never replaces a confirmed one. Returns True when stored.
        """
        if provisional and descriptor.address in self._confirmed:
            return False
        if not provisional:
            self._confirmed.add(descriptor.address)
        self._devices[descriptor.address] = descriptor
        return True

    def get(self, address: str) -> Optional[DeviceDescriptor]:
        return self._devices.get(address)

    def values(self) -> List[DeviceDescriptor]:
        return list(self._devices.values())

    def __contains__(self, address: str) -> bool:
        return address in self._devices

    def __len__(self) -> int:
        return len(self._devices)


@dataclass
class DiscoverySession:
    """State of one bounded discovery call"""
    max_devices: int
    deadline: float
    service_marker: str = "Roku"
    accept_bare_address_records: bool = True
    directory: DeviceDirectory = field(default_factory=DeviceDirectory)
    addresses_by_name: Dict[str, str] = field(default_factory=dict)
    targets_by_name: Dict[str, Set[str]] = field(default_factory=dict)
    responses_seen: int = 0

    @property
    def is_full(self) -> bool:
        return len(self.directory) >= self.max_devices

    def add_records(self, records: List[MdnsRecord]) -> bool:
        """
        Fold one response into the directory. Returns True once the device cap
        is reached; remaining records of that response are ignored.
        """
        self.responses_seen += 1
        self._remember(records)

        for record in records:
            if self.service_marker and self.service_marker in record.name:
                address = self.resolve_address(record.name)
                if address and self.directory.put(
                        DeviceDescriptor(address=address, display_name=_display_name(record.name))):
                    if self.is_full:
                        return True

            if record.type == TYPE_A and record.data and self.accept_bare_address_records:
                if self.directory.put(
                        DeviceDescriptor(address=record.data, display_name=_display_name(record.name)),
                        provisional=True):
                    if self.is_full:
                        return True

        return False

    def resolve_address(self, name: str, max_hops: int = 3) -> Optional[str]:
        """Follow PTR/SRV targets from name until an A record is found"""
        pending = [name]
        seen = set()
        for _ in range(max_hops + 1):
            next_names = []
            for candidate in pending:
                if candidate in seen:
                    continue
                seen.add(candidate)
                if candidate in self.addresses_by_name:
                    return self.addresses_by_name[candidate]
                next_names.extend(self.targets_by_name.get(candidate, ()))
            if not next_names:
                return None
            pending = next_names
        return None

    def normalized_devices(self) -> List[Dict]:
        return [device.normalized() for device in self.directory.values()][:self.max_devices]

    def _remember(self, records: List[MdnsRecord]) -> None:
        for record in records:
            if not record.data:
                continue
            if record.type == TYPE_A:
                self.addresses_by_name[record.name] = record.data
            elif record.type in (TYPE_PTR, TYPE_SRV):
                self.targets_by_name.setdefault(record.name, set()).add(record.data)


def _display_name(record_name: str) -> Optional[str]:
    """'Roku Ultra._ecp-server._tcp.local.' -> 'Roku Ultra'; 'Roku-Ultra.local.' -> 'Roku-Ultra.local'"""
    name = record_name.rstrip('.')
    if '._' in name:
        name = name.split('._', 1)[0]
    return name or None
