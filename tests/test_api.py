import re

import pytest
from fastapi.testclient import TestClient

from api.main_api import RemoteAPI, build_origin_regex
from config_loader import get_default_config
from roku import DeviceTimeout, DeviceUnreachable


class _FakeEcpClient:
    def __init__(self, error: Exception = None) -> None:
        self.error = error
        self.calls: list[tuple] = []

    async def _answer(self, name: str, *args, result=None):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error
        return result

    async def get_device_info(self, address):
        return await self._answer("info", address, result={"model_name": "Roku Ultra"})

    async def get_apps(self, address):
        return await self._answer("apps", address, result=[{"id": "12", "name": "Netflix", "type": "appl", "version": "5.2.10"}])

    async def get_active_app(self, address):
        return await self._answer("active", address, result=None)

    async def keypress(self, address, key):
        return await self._answer("keypress", address, key)

    async def send_text(self, address, text):
        return await self._answer("text", address, text)

    async def launch_app(self, address, app_id):
        return await self._answer("launch", address, app_id)

    async def get_media_state(self, address):
        return await self._answer("media", address, result={"available": False, "error": "Roku API error: 404 Not Found"})


class _FakeDiscovery:
    def __init__(self, devices=None) -> None:
        self.devices = devices or []
        self.timeouts: list = []

    async def discover(self, timeout_ms=None, max_devices=None):
        self.timeouts.append(timeout_ms)
        return self.devices


def _client(ecp=None, discovery=None, **server) -> TestClient:
    config = get_default_config()
    config["frontend"]["static_dir"] = None
    config["server"].update(server)
    api = RemoteAPI(config, ecp_client=ecp or _FakeEcpClient(), discovery=discovery or _FakeDiscovery())
    return TestClient(api.app)


def test_health() -> None:
    response = _client().get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_public_config_exposes_discovery_defaults() -> None:
    data = _client().get("/api/system/config").json()["data"]

    assert data == {"discovery_timeout_ms": 5000, "max_timeout_ms": 30000, "max_devices": 10, "ecp_port": 8060}


def test_discover_returns_devices_envelope() -> None:
    device = {"address": "10.0.0.5", "name": "Roku Ultra", "port": 8060, "type": "roku", "url": "http://10.0.0.5:8060"}
    discovery = _FakeDiscovery([device])

    response = _client(discovery=discovery).get("/api/devices/discover", params={"timeout": 1500})

    assert response.status_code == 200
    assert response.json() == {"success": True, "devices": [device]}
    assert discovery.timeouts == [1500]


def test_discover_uses_default_timeout_when_omitted() -> None:
    discovery = _FakeDiscovery()

    _client(discovery=discovery).get("/api/devices/discover")

    assert discovery.timeouts == [None]


@pytest.mark.parametrize("timeout", [0, 60000, "soon"])
def test_discover_rejects_bad_timeout(timeout) -> None:
    response = _client().get("/api/devices/discover", params={"timeout": timeout})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_device_reads_wrap_data() -> None:
    client = _client()

    assert client.get("/api/device/10.0.0.5/info").json() == {"success": True, "data": {"model_name": "Roku Ultra"}}
    assert client.get("/api/device/10.0.0.5/apps").json()["data"][0]["id"] == "12"
    assert client.get("/api/device/10.0.0.5/active").json() == {"success": True, "data": None}
    assert client.get("/api/device/10.0.0.5/media").json()["data"]["available"] is False


def test_commands_are_relayed() -> None:
    ecp = _FakeEcpClient()
    client = _client(ecp=ecp)

    assert client.post("/api/device/10.0.0.5/keypress", json={"key": "Home"}).json() == {"success": True}
    assert client.post("/api/device/10.0.0.5/text", json={"text": "a b"}).json() == {"success": True}
    assert client.post("/api/device/10.0.0.5:8060/launch", json={"appId": "12"}).json() == {"success": True}

    assert ecp.calls == [
        ("keypress", "10.0.0.5", "Home"),
        ("text", "10.0.0.5", "a b"),
        ("launch", "10.0.0.5:8060", "12"),
    ]


@pytest.mark.parametrize("path,body,message", [
    ("keypress", None, "Key is required"),
    ("text", None, "Text is required"),
    ("launch", None, "appId is required"),
    ("keypress", {}, "Key is required"),
    ("keypress", {"key": ""}, "Key is required"),
    ("text", {"text": ""}, "Text is required"),
    ("launch", {"app_id": None}, "appId is required"),
])
def test_missing_fields_are_rejected(path, body, message) -> None:
    ecp = _FakeEcpClient()

    response = _client(ecp=ecp).post(f"/api/device/10.0.0.5/{path}", json=body)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": message}
    assert ecp.calls == []


def test_malformed_body_uses_error_envelope() -> None:
    response = _client().post(
        "/api/device/10.0.0.5/keypress",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_unreachable_device_maps_to_502() -> None:
    ecp = _FakeEcpClient(DeviceUnreachable("Cannot connect to Roku device at 10.0.0.5."))

    response = _client(ecp=ecp).post("/api/device/10.0.0.5/keypress", json={"key": "Home"})

    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "Cannot connect to Roku device at 10.0.0.5."}


def test_timeout_maps_to_504() -> None:
    ecp = _FakeEcpClient(DeviceTimeout("Connection timeout to Roku device at 10.0.0.5."))

    response = _client(ecp=ecp).get("/api/device/10.0.0.5/apps")

    assert response.status_code == 504
    assert response.json()["success"] is False


def test_unexpected_error_is_hidden_unless_debug() -> None:
    ecp = _FakeEcpClient(RuntimeError("parser exploded"))

    hidden = _client(ecp=ecp).get("/api/device/10.0.0.5/info")
    shown = _client(ecp=ecp, debug=True).get("/api/device/10.0.0.5/info")

    assert hidden.status_code == 500
    assert hidden.json() == {"success": False, "error": "Internal server error"}
    assert shown.json() == {"success": False, "error": "parser exploded"}


def test_cors_allows_wildcard_origin() -> None:
    client = _client()

    allowed = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
    denied = client.get("/api/health", headers={"Origin": "http://evil.example"})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert "access-control-allow-origin" not in denied.headers


def test_origin_patterns() -> None:
    regex = build_origin_regex(["http://localhost:*", "https://remote.example.com"])

    assert re.fullmatch(regex, "http://localhost:3000")
    assert re.fullmatch(regex, "https://remote.example.com")
    assert not re.fullmatch(regex, "https://remote.example.com.evil.net")
    assert not re.fullmatch(regex, "http://localhostXevil")
    assert build_origin_regex([]) is None
