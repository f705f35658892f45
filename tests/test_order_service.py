import asyncio

import httpx
import pytest

from discovery.errors import DependencyUnavailableError
from discovery.resolver import ConsulResolver, StaticResolver
from order_service.core.config import Settings
from order_service.main import create_app, resolver_from_settings
from order_service.services.store import OrderStore

CATALOG = {"food-catalog-service": "http://food-catalog-service:8080"}


class _DownResolver:
    """Resolver whose registry is never reachable."""

    async def resolve(self, service_name: str) -> str:
        raise DependencyUnavailableError(service_name, "registry lookup failed")


def _settings(**kw):
    kw.setdefault("registry_url", "http://127.0.0.1:1")
    kw.setdefault("registration_enabled", False)
    return Settings(**kw)


def _app(resolver=None, store=None):
    return create_app(
        _settings(),
        store=store if store is not None else OrderStore(),
        resolver=resolver if resolver is not None else StaticResolver(CATALOG),
    )


def _client(app):
    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://orders.local")


@pytest.mark.anyio
async def test_health_returns_plain_ok():
    async with _client(_app()) as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.text == "OK"


@pytest.mark.anyio
async def test_create_order_then_read_back():
    async with _client(_app()) as client:
        resp = await client.post("/orders", json={"item_ids": ["1", "2"]})
        assert resp.status_code == 201
        assert resp.headers["content-type"].startswith("application/json")
        created = resp.json()
        assert created["item_ids"] == ["1", "2"]
        assert created["status"] == "received"
        assert created["id"]

        listing = await client.get("/orders")
    assert listing.status_code == 200
    assert listing.json() == {created["id"]: created}


@pytest.mark.anyio
async def test_client_supplied_id_and_status_are_ignored():
    async with _client(_app()) as client:
        resp = await client.post("/orders", json={"id": "mine", "item_ids": ["3"], "status": "fulfilled"})
    assert resp.status_code == 201
    assert resp.json()["id"] != "mine"
    assert resp.json()["status"] == "received"


@pytest.mark.anyio
async def test_n_creations_yield_n_unique_entries():
    async with _client(_app()) as client:
        created = [
            (await client.post("/orders", json={"item_ids": [str(i)]})).json()
            for i in range(10)
        ]
        listing = (await client.get("/orders")).json()

    ids = [o["id"] for o in created]
    assert len(set(ids)) == 10
    assert len(listing) == 10
    for order in created:
        assert listing[order["id"]] == order


@pytest.mark.anyio
async def test_concurrent_creations_are_not_lost():
    async with _client(_app()) as client:
        responses = await asyncio.gather(
            *(client.post("/orders", json={"item_ids": ["1"]}) for _ in range(25))
        )
        listing = (await client.get("/orders")).json()
    assert all(r.status_code == 201 for r in responses)
    assert len(listing) == 25


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b'{"item_ids": []}',
        b'{"item_ids": "1"}',
        b"{}",
    ],
)
async def test_bad_body_is_400_and_store_unchanged(body):
    store = OrderStore()
    async with _client(_app(store=store)) as client:
        resp = await client.post("/orders", content=body, headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["detail"]
    assert len(store) == 0


@pytest.mark.anyio
async def test_decode_error_is_surfaced():
    async with _client(_app()) as client:
        resp = await client.post("/orders", content=b"{not json", headers={"content-type": "application/json"})
    assert resp.status_code == 400
    assert "JSON" in resp.json()["detail"]


@pytest.mark.anyio
@pytest.mark.parametrize("headers", [{}, {"content-type": "text/plain"}])
async def test_json_body_accepted_whatever_content_type(headers):
    store = OrderStore()
    async with _client(_app(store=store)) as client:
        resp = await client.post("/orders", content=b'{"item_ids":["1"]}', headers=headers)
    assert resp.status_code == 201
    assert resp.json()["item_ids"] == ["1"]
    assert len(store) == 1


@pytest.mark.anyio
async def test_empty_body_is_400():
    store = OrderStore()
    async with _client(_app(store=store)) as client:
        resp = await client.post("/orders")
    assert resp.status_code == 400
    assert len(store) == 0


@pytest.mark.anyio
@pytest.mark.parametrize("resolver", [StaticResolver({}), _DownResolver()])
async def test_resolution_failure_is_500_and_store_unchanged(resolver):
    store = OrderStore()
    async with _client(_app(resolver=resolver, store=store)) as client:
        resp = await client.post("/orders", json={"item_ids": ["1"]})
        listing = await client.get("/orders")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Food catalog service not available"}
    assert listing.json() == {}
    assert len(store) == 0


@pytest.mark.anyio
async def test_preflight_gets_cors_headers_and_empty_body():
    async with _client(_app()) as client:
        resp = await client.options(
            "/orders",
            headers={"Origin": "http://ui.local", "Access-Control-Request-Method": "POST"},
        )
    assert resp.status_code == 200
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization"


@pytest.mark.anyio
async def test_preflight_answered_on_any_path():
    async with _client(_app()) as client:
        resp = await client.options("/health")
    assert resp.status_code == 200
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "*"


@pytest.mark.anyio
async def test_regular_responses_carry_cors_headers():
    async with _client(_app()) as client:
        ok = await client.get("/orders")
        bad = await client.post("/orders", content=b"nope", headers={"content-type": "application/json"})
    assert ok.headers["access-control-allow-origin"] == "*"
    assert bad.headers["access-control-allow-origin"] == "*"


@pytest.mark.anyio
async def test_metrics_count_orders():
    async with _client(_app()) as client:
        await client.post("/orders", json={"item_ids": ["1"]})
        resp = await client.get("/metrics")
    assert resp.status_code == 200
    assert "orders_created_total" in resp.text


@pytest.mark.anyio
async def test_unreachable_registry_does_not_block_health(free_port):
    app = create_app(
        _settings(registry_url=f"http://127.0.0.1:{free_port()}", registration_enabled=True),
        resolver=StaticResolver(CATALOG),
    )
    async with app.router.lifespan_context(app):
        async with _client(app) as client:
            assert (await client.get("/health")).status_code == 200
        assert await app.state.registration is False


def test_resolver_selected_by_configuration():
    static = resolver_from_settings(_settings(catalog_service_url="http://catalog:1"))
    assert isinstance(static, StaticResolver)
    consul = resolver_from_settings(_settings(discovery_mode="consul"))
    assert isinstance(consul, ConsulResolver)


def test_invalid_discovery_mode_rejected():
    with pytest.raises(ValueError):
        _settings(discovery_mode="dns")


@pytest.mark.anyio
async def test_consul_resolver_uses_app_scoped_client():
    app = create_app(_settings(discovery_mode="consul"), store=OrderStore())
    async with app.router.lifespan_context(app):
        resolver = app.state.resolver
        assert isinstance(resolver, ConsulResolver)
        assert resolver.client is not None
        assert not resolver.client.is_closed
    assert resolver.client.is_closed


@pytest.mark.anyio
async def test_injected_resolver_kept_through_lifespan():
    resolver = StaticResolver(CATALOG)
    app = create_app(_settings(), resolver=resolver)
    async with app.router.lifespan_context(app):
        assert app.state.resolver is resolver
