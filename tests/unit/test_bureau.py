"""Unit tests for bureau gateways"""

import pytest
import httpx
from types import SimpleNamespace
from credit_engine.domain.exceptions import BureauRecordNotFoundError, BureauUnavailableError
from credit_engine.domain.models import BureauSnapshot
from credit_engine.infrastructure.clients.bureau import (
    HttpBureauGateway,
    SimulatedBureauGateway,
    StaticBureauGateway,
    create_bureau_gateway,
)

BUREAU_FILE = {
    "blacklist": {"blacklisted": False},
    "score": {"historical_score": 780},
    "active-credits": {"active_credits": 1},
    "delinquency": {"recent_delinquency": False},
}


def bureau_handler(responses=None, calls=None):
    """
    MockTransport handler serving BUREAU_FILE.

    `responses` maps a sub-query path to a list of queued overrides (a status
    code or an exception) consumed one per request before falling back to 200.
    """
    responses = responses or {}
    calls = calls if calls is not None else []

    def handler(request: httpx.Request) -> httpx.Response:
        sub_query = request.url.path.rsplit("/", 1)[-1]
        calls.append(sub_query)
        queued = responses.get(sub_query)
        if queued:
            override = queued.pop(0)
            if isinstance(override, Exception):
                raise override
            return httpx.Response(override, json={"detail": "error"})
        return httpx.Response(200, json=BUREAU_FILE[sub_query])

    return handler


def http_gateway(handler, **kwargs) -> HttpBureauGateway:
    return HttpBureauGateway(base_url="http://bureau.test", transport=httpx.MockTransport(handler), **kwargs)


async def test_static_gateway_returns_canned_and_neutral():
    """Test canned snapshots are returned and unknown documents get a neutral file"""
    snapshot = BureauSnapshot(blacklisted=True, historical_score=400, active_credits=7, recent_delinquency=True)
    gateway = StaticBureauGateway({"12345678": snapshot})

    assert await gateway.lookup("12345678") == snapshot
    assert await gateway.lookup("00000000") == BureauSnapshot.neutral()
    assert gateway.calls == ["12345678", "00000000"]


async def test_static_gateway_configured_failure():
    """Test a configured failing document raises BureauUnavailableError"""
    gateway = StaticBureauGateway(failing={"50000001"})
    with pytest.raises(BureauUnavailableError):
        await gateway.lookup("50000001")


async def test_simulated_gateway_profiles():
    """Test blacklisted, regular and default documents fall in their data ranges"""
    gateway = SimulatedBureauGateway(
        blacklist={"12345678"}, regular_history={"22222222"}, seed=7, latency_min_ms=0, latency_max_ms=0
    )

    blacklisted = await gateway.lookup("12345678")
    assert blacklisted.blacklisted is True
    assert 300 <= blacklisted.historical_score <= 449
    assert 5 <= blacklisted.active_credits <= 10
    assert blacklisted.recent_delinquency is True

    regular = await gateway.lookup("22222222")
    assert regular.blacklisted is False
    assert 550 <= regular.historical_score <= 649
    assert 2 <= regular.active_credits <= 4

    healthy = await gateway.lookup("40000001")
    assert 650 <= healthy.historical_score <= 849
    assert 0 <= healthy.active_credits <= 2
    assert healthy.recent_delinquency is False


async def test_simulated_gateway_is_reproducible_with_seed():
    """Test two gateways with the same seed answer identically"""
    def build():
        return SimulatedBureauGateway(regular_history={"22222222"}, seed=42, latency_min_ms=0, latency_max_ms=1)

    first, second = build(), build()
    for document_id in ("22222222", "40000001", "22222222"):
        assert await first.lookup(document_id) == await second.lookup(document_id)


async def test_http_gateway_assembles_snapshot_from_four_sub_queries():
    """Test one snapshot is assembled from all four sub-queries"""
    calls = []
    snapshot = await http_gateway(bureau_handler(calls=calls)).lookup("40000001")

    assert snapshot == BureauSnapshot(blacklisted=False, historical_score=780, active_credits=1, recent_delinquency=False)
    assert sorted(calls) == ["active-credits", "blacklist", "delinquency", "score"]


async def test_http_gateway_retries_5xx_once():
    """Test a 5xx on a sub-query is retried once"""
    calls = []
    handler = bureau_handler(responses={"score": [503]}, calls=calls)

    snapshot = await http_gateway(handler, max_retries=1).lookup("40000001")

    assert snapshot.historical_score == 780
    assert calls.count("score") == 2


async def test_http_gateway_retries_timeout_once():
    """Test a read timeout is retried once"""
    calls = []
    timeout = httpx.ReadTimeout("read timed out")
    handler = bureau_handler(responses={"blacklist": [timeout]}, calls=calls)

    snapshot = await http_gateway(handler).lookup("40000001")

    assert snapshot.blacklisted is False
    assert calls.count("blacklist") == 2


async def test_http_gateway_gives_up_after_one_retry():
    """Test a persistent 5xx fails after a single retry"""
    calls = []
    handler = bureau_handler(responses={"active-credits": [502, 502, 502]}, calls=calls)

    with pytest.raises(BureauUnavailableError):
        await http_gateway(handler, max_retries=5).lookup("40000001")
    # retries are capped at one regardless of configuration
    assert calls.count("active-credits") == 2


async def test_http_gateway_does_not_retry_client_errors():
    """Test a 4xx other than 404 fails without a retry"""
    calls = []
    handler = bureau_handler(responses={"delinquency": [400]}, calls=calls)

    with pytest.raises(BureauUnavailableError):
        await http_gateway(handler).lookup("40000001")
    assert calls.count("delinquency") == 1


async def test_http_gateway_connection_error_is_unavailable():
    """Test a refused connection maps to BureauUnavailableError"""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    with pytest.raises(BureauUnavailableError):
        await http_gateway(handler).lookup("40000001")


async def test_http_gateway_garbled_encoding_is_unavailable():
    """Test a body that fails to decompress maps to BureauUnavailableError"""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")

    with pytest.raises(BureauUnavailableError):
        await http_gateway(handler).lookup("40000001")


@pytest.mark.parametrize("field,sub_query", [("blacklisted", "blacklist"), ("recent_delinquency", "delinquency")])
async def test_http_gateway_rejects_non_boolean_flags(field, sub_query):
    """Test a string flag such as "false" is invalid data, not a truthy value"""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.rsplit("/", 1)[-1]
        if path == sub_query:
            return httpx.Response(200, json={field: "false"})
        return httpx.Response(200, json=BUREAU_FILE[path])

    with pytest.raises(BureauUnavailableError):
        await http_gateway(handler).lookup("40000001")


async def test_http_gateway_unknown_document_is_neutral():
    """Test a 404 yields the neutral snapshot by default"""
    handler = bureau_handler(responses={path: [404] for path in BUREAU_FILE})
    assert await http_gateway(handler).lookup("00000000") == BureauSnapshot.neutral()


async def test_http_gateway_strict_unknown_raises_not_found():
    """Test a 404 raises BureauRecordNotFoundError in strict mode"""
    handler = bureau_handler(responses={path: [404] for path in BUREAU_FILE})
    with pytest.raises(BureauRecordNotFoundError):
        await http_gateway(handler, strict_unknown=True).lookup("00000000")


async def test_http_gateway_rejects_out_of_range_score():
    """Test a score outside 300-850 is invalid bureau data"""
    def handler(request: httpx.Request) -> httpx.Response:
        sub_query = request.url.path.rsplit("/", 1)[-1]
        if sub_query == "score":
            return httpx.Response(200, json={"historical_score": 999})
        return httpx.Response(200, json=BUREAU_FILE[sub_query])

    with pytest.raises(BureauUnavailableError):
        await http_gateway(handler).lookup("40000001")


async def test_http_gateway_accepts_missing_history():
    """Test a null score means no bureau history"""
    def handler(request: httpx.Request) -> httpx.Response:
        sub_query = request.url.path.rsplit("/", 1)[-1]
        if sub_query == "score":
            return httpx.Response(200, json={"historical_score": None})
        return httpx.Response(200, json=BUREAU_FILE[sub_query])

    snapshot = await http_gateway(handler).lookup("40000001")
    assert snapshot.historical_score is None


def test_create_bureau_gateway_by_mode():
    """Test the factory picks the gateway from bureau_mode"""
    base = dict(
        bureau_api_base="http://bureau.test",
        http_timeout_seconds=2.0,
        bureau_max_retries=1,
        bureau_strict_unknown=False,
        bureau_blacklist=["12345678"],
        bureau_regular_history=[],
        bureau_seed=1,
        bureau_latency_min_ms=5,
        bureau_latency_max_ms=50,
    )

    assert isinstance(create_bureau_gateway(SimpleNamespace(bureau_mode="http", **base)), HttpBureauGateway)
    simulated = create_bureau_gateway(SimpleNamespace(bureau_mode="simulated", **base))
    assert isinstance(simulated, SimulatedBureauGateway)
    assert "12345678" in simulated.blacklist

    with pytest.raises(ValueError):
        create_bureau_gateway(SimpleNamespace(bureau_mode="carrier-pigeon", **base))
