"""Remote config-server client, locator and decrypt resolver against a stubbed transport."""

from __future__ import annotations

import base64
from pathlib import Path

import httpx
import pytest
import yaml

from lib_reloadable_config.adapters.config_server.client import ConfigServerClient
from lib_reloadable_config.adapters.config_server.locator import ConfigServerResourceLocator
from lib_reloadable_config.adapters.config_server.resolver import ConfigServerDecryptResolver
from lib_reloadable_config.application.provider import ConfigProvider
from lib_reloadable_config.domain.errors import LocatorFailure, ResolverFailure
from lib_reloadable_config.testing import InMemoryResourceLocator

URI = "https://config.test"


class FakeServer:
    """Tiny stand-in for the environment and decrypt endpoints."""

    def __init__(self) -> None:
        self.sources: dict[tuple[str, str], dict] = {}
        self.decrypt_status = 200
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.strip("/")
        if request.method == "POST" and path == "decrypt":
            if self.decrypt_status != 200:
                return httpx.Response(self.decrypt_status, text="nope")
            return httpx.Response(200, text=f"plain({request.content.decode()})")
        service, _, profile = path.partition("/")
        source = self.sources.get((service, profile))
        if source is None:
            return httpx.Response(200, json={"name": service, "propertySources": []})
        return httpx.Response(
            200,
            json={
                "name": service,
                "propertySources": [
                    {"name": f"{profile}.yml", "source": source},
                    {"name": "shared.yml", "source": {"ignored": "yes"}},
                ],
            },
        )

    def client(self, **kwargs) -> ConfigServerClient:
        return ConfigServerClient(URI, transport=httpx.MockTransport(self), **kwargs)


@pytest.fixture()
def server() -> FakeServer:
    return FakeServer()


def test_fetch_returns_first_property_source(server: FakeServer) -> None:
    server.sources[("orders", "default")] = {"db.url": "jdbc:x"}
    with server.client() as client:
        assert client.fetch_properties("orders", "default") == {"db.url": "jdbc:x"}
        assert client.fetch_properties("orders", "dev") is None


def test_fetch_sends_basic_auth(server: FakeServer) -> None:
    server.sources[("orders", "default")] = {"a": "1"}
    client = server.client(username="svc", password="pw")
    client.fetch_properties("orders", "default")
    expected = "Basic " + base64.b64encode(b"svc:pw").decode()
    assert server.requests[-1].headers["Authorization"] == expected


def test_fetch_non_200_is_not_found() -> None:
    client = ConfigServerClient(URI, transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    assert client.fetch_properties("orders", "default") is None


def test_fetch_malformed_payload_raises_locator_failure() -> None:
    client = ConfigServerClient(URI, transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")))
    with pytest.raises(LocatorFailure):
        client.fetch_properties("orders", "default")
    odd = ConfigServerClient(URI, transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"x": 1})))
    with pytest.raises(LocatorFailure):
        odd.fetch_properties("orders", "default")


def test_fetch_transport_error_raises_locator_failure() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LocatorFailure):
        ConfigServerClient(URI, transport=httpx.MockTransport(refuse)).fetch_properties("orders", "default")


def test_decrypt_strips_cipher_marker_and_posts_plain_text(server: FakeServer) -> None:
    assert server.client().decrypt("db.password", "{cipher}AQB3") == "plain(AQB3)"
    request = server.requests[-1]
    assert request.method == "POST"
    assert request.url == httpx.URL(f"{URI}/decrypt")
    assert request.headers["Content-Type"] == "text/plain"


def test_decrypt_failure_fails_closed(server: FakeServer) -> None:
    server.decrypt_status = 500
    with pytest.raises(ResolverFailure) as info:
        server.client().decrypt("db.password", "{cipher}AQB3")
    assert "AQB3" not in str(info.value)


def test_locator_renders_remote_source_as_yaml(server: FakeServer) -> None:
    server.sources[("orders", "dev")] = {"db.url": "jdbc:x", "pool": 5}
    locator = ConfigServerResourceLocator(server.client(), "orders")
    assert locator.base_path == "configserver://orders/"
    text = locator.find_as_string("dev/application.yml")
    assert yaml.safe_load(text) == {"db.url": "jdbc:x", "pool": 5}
    assert locator.find("default/application.yml") is None
    assert locator.find("dev/logo.png") is None
    assert server.requests[0].url.path == "/orders/dev"


def test_locator_decrypts_local_secret_files(server: FakeServer, tmp_path: Path) -> None:
    (tmp_path / "dev").mkdir()
    (tmp_path / "dev" / "keystore.secret").write_text("{cipher}XYZ\n", encoding="utf-8")
    locator = ConfigServerResourceLocator(server.client(), "orders", secrets_dir=tmp_path)
    assert locator.find_as_string("dev/keystore.secret") == "plain(XYZ)"
    assert locator.find("dev/other.secret") is None


def test_locator_secret_decrypt_failure_is_locator_failure(server: FakeServer, tmp_path: Path) -> None:
    (tmp_path / "dev").mkdir()
    (tmp_path / "dev" / "keystore.secret").write_text("XYZ", encoding="utf-8")
    server.decrypt_status = 401
    locator = ConfigServerResourceLocator(server.client(), "orders", secrets_dir=tmp_path)
    with pytest.raises(LocatorFailure):
        locator.find("dev/keystore.secret")


def test_decrypt_resolver_only_touches_sensitive_values(server: FakeServer) -> None:
    resolver = ConfigServerDecryptResolver(server.client())
    assert resolver.resolve("db.url", "jdbc:x") == "jdbc:x"
    assert resolver.resolve("db.url", "{cipher}AB") == "plain(AB)"
    assert resolver.resolve("api.secret", "CD") == "plain(CD)"
    assert resolver.is_sensitive("api.secret", "CD")
    assert not resolver.is_sensitive("db.url", "jdbc:x")


def test_remote_values_override_local_and_are_decrypted(server: FakeServer) -> None:
    server.sources[("orders", "default")] = {"db": {"password": "{cipher}S3", "url": "remote"}}
    local = InMemoryResourceLocator({"default/application.yml": "db:\n  url: local\n  pool: 2\n"})
    client = server.client()
    with ConfigProvider(
        ["default"],
        locators=[local, ConfigServerResourceLocator(client, "orders")],
        resolvers=[ConfigServerDecryptResolver(client)],
    ) as provider:
        assert provider.require("db.url").value == "remote"
        assert provider.require("db.pool").value == "2"
        assert provider.require("db.password").value == "plain(S3)"
        assert provider.is_sensitive("db.password")


def test_decrypt_outage_retains_previous_secret(server: FakeServer) -> None:
    server.sources[("orders", "default")] = {"token": "{cipher}V1"}
    client = server.client()
    with ConfigProvider(
        ["default"],
        locators=[ConfigServerResourceLocator(client, "orders")],
        resolvers=[ConfigServerDecryptResolver(client)],
    ) as provider:
        server.sources[("orders", "default")] = {"token": "{cipher}V2"}
        server.decrypt_status = 503
        provider.reload()
        assert provider.require("token").value == "plain(V1)"
        server.decrypt_status = 200
        provider.reload()
        assert provider.require("token").value == "plain(V2)"
