import pytest
from fastapi.testclient import TestClient

from api import server
from core.normalizer import normalize
from runtime.override import HostOverride


def _native(hostname, options, callback):
    callback(OSError("Name or service not known"), None, None)


@pytest.fixture
def client(monkeypatch):
    book = normalize(
        {
            "example.com": ["93.184.216.34", "F2AAD73D32683B716D2A7D61B51C6D5764AB3899"],
            "example.org": {"ip": ["140.82.121.4", "::1"]},
        }
    )
    override = HostOverride(book=book, native_lookup=_native, trust_check=lambda h, c: None)
    monkeypatch.setattr(server, "override", override)
    return TestClient(server.app)


def test_lookup_overridden(client):
    res = client.get("/api/lookup", params={"host": "example.com", "family": 6})
    assert res.status_code == 200
    assert res.json() == {"host": "example.com", "address": "::ffff:93.184.216.34", "family": 6}


def test_lookup_all(client):
    res = client.get("/api/lookup", params={"host": "example.org", "all": True})
    assert res.json()["addresses"] == [
        {"address": "140.82.121.4", "family": 4},
        {"address": "::1", "family": 6},
    ]


def test_lookup_unknown_and_invalid(client):
    assert client.get("/api/lookup", params={"host": "nope.example"}).status_code == 404
    assert client.get("/api/lookup", params={"host": "example.com", "family": 5}).status_code == 400


def test_hosts(client):
    hosts = client.get("/api/hosts").json()["hosts"]
    assert hosts["example.org"]["ipv6"] == ["::1"]
    assert hosts["example.com"]["pins"] == ["F2AAD73D32683B716D2A7D61B51C6D5764AB3899"]


def test_validate(client):
    good = {"host": "example.com", "certificate": {"fingerprint": "F2:AA:D7:3D:32:68:3B:71:6D:2A:7D:61:B5:1C:6D:57:64:AB:38:99"}}
    assert client.post("/api/validate", json=good).json() == {"host": "example.com", "ok": True}

    bad = {"host": "example.com", "certificate": {"fingerprint": "00:11"}, "check_pinning_only": True}
    body = client.post("/api/validate", json=bad).json()
    assert body["ok"] is False
    assert body["code"] == "UNTRUSTED_CERT_IN_CHAIN"

    assert client.post("/api/validate", json={"host": "example.com"}).status_code == 400


def test_health(client):
    assert client.get("/api/health").json() == {"hosts": 2, "installed": False, "readonly": True}
