# tests/market/test_market_providers.py
# =============================================================================
# 行情数据源测试 / Market data provider tests
# - 随机桩 / random stub
# - HTTP 请求、重试与解析 / HTTP request, retry & parsing
# - 工厂方法 / factory
# =============================================================================

import httpx
import pytest

from cryptocouncil.config import MarketConfig
from cryptocouncil.market import (
    HttpMarketDataProvider,
    MarketDataError,
    RandomMarketDataProvider,
    create_market_provider,
)
from cryptocouncil.primitives.models import MarketSnapshot

_PAYLOAD = {
    "price": 64000.5,
    "volume24h": 1000000,
    "marketCap": 1200000000,
    "priceChange24h": -2.5,
    "holders": 12345,
    "liquidityUSD": 50000,
}


class TestRandomProvider:
    @pytest.mark.asyncio
    async def test_snapshot_ranges(self):
        provider = RandomMarketDataProvider(seed=3)
        for _ in range(50):
            snap = await provider.fetch("BTC")
            assert isinstance(snap, MarketSnapshot)
            assert snap.price > 0
            assert snap.volume_24h >= 0
            assert snap.market_cap >= 0
            assert snap.holders >= 0
            assert snap.liquidity_usd >= 0
            assert -20 <= snap.price_change_24h <= 20

    @pytest.mark.asyncio
    async def test_seeded_reproducible(self):
        a = await RandomMarketDataProvider(seed=1).fetch("ETH")
        b = await RandomMarketDataProvider(seed=1).fetch("ETH")
        assert a == b


class TestHttpProvider:
    @pytest.mark.asyncio
    async def test_fetch_parses_camel_case(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=_PAYLOAD)

        provider = HttpMarketDataProvider(
            url="https://prices.example.com/v1/",
            api_key="secret",
            transport=httpx.MockTransport(handler),
        )
        snap = await provider.fetch("btc")
        assert seen["url"] == "https://prices.example.com/v1/BTC"
        assert seen["auth"] == "Bearer secret"
        assert snap.price == 64000.5
        assert snap.price_change_24h == -2.5
        assert snap.holders == 12345
        assert snap.liquidity_usd == 50000.0

    @pytest.mark.asyncio
    async def test_fetch_accepts_wrapped_snake_case(self):
        payload = {"data": {
            "price": 1, "volume_24h": 2, "market_cap": 3,
            "price_change_24h": 4, "holders": 5, "liquidity_usd": 6,
        }}
        provider = HttpMarketDataProvider(
            url="https://p.example.com",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload)),
        )
        snap = await provider.fetch("ETH")
        assert snap.to_dict() == {
            "price": 1.0, "volume_24h": 2.0, "market_cap": 3.0,
            "price_change_24h": 4.0, "holders": 5, "liquidity_usd": 6.0,
        }

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(503, text="busy")
            return httpx.Response(200, json=_PAYLOAD)

        provider = HttpMarketDataProvider(
            url="https://p.example.com", max_retries=2,
            transport=httpx.MockTransport(handler),
        )
        snap = await provider.fetch("BTC")
        assert calls["n"] == 2
        assert snap.price == 64000.5

    @pytest.mark.asyncio
    async def test_retries_exhausted_raise(self):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            return httpx.Response(500, text="boom")

        provider = HttpMarketDataProvider(
            url="https://p.example.com", max_retries=1,
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(MarketDataError):
            await provider.fetch("BTC")
        assert calls["n"] == 2

    @pytest.mark.asyncio
    async def test_missing_field_raises_without_retry(self):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            return httpx.Response(200, json={"price": 1})

        provider = HttpMarketDataProvider(
            url="https://p.example.com", max_retries=3,
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(MarketDataError):
            await provider.fetch("BTC")
        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_negative_volume_rejected(self):
        payload = dict(_PAYLOAD, volume24h=-1)
        provider = HttpMarketDataProvider(
            url="https://p.example.com",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload)),
        )
        with pytest.raises(MarketDataError):
            await provider.fetch("BTC")


class TestFactory:
    def test_random_by_default(self):
        assert isinstance(create_market_provider(MarketConfig()), RandomMarketDataProvider)

    def test_http_from_config(self):
        cfg = MarketConfig(provider="http", url="https://p.example.com")
        assert isinstance(create_market_provider(cfg), HttpMarketDataProvider)

    def test_http_without_url_rejected(self):
        with pytest.raises(ValueError):
            HttpMarketDataProvider.from_market_config(MarketConfig(provider="http"))
