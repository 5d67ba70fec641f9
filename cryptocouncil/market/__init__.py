# market/__init__.py
# 行情数据源：接口、随机桩与 HTTP 客户端 / Market data: interface, random stub & HTTP client

from typing import Optional

from cryptocouncil.market.http_provider import HttpMarketDataProvider
from cryptocouncil.market.provider import (
    MarketDataError,
    MarketDataProvider,
    RandomMarketDataProvider,
)


def create_market_provider(config, seed: Optional[int] = None) -> MarketDataProvider:
    """根据 MarketConfig.provider 创建数据源。 / Build a provider from a MarketConfig."""
    if config.provider == "http":
        return HttpMarketDataProvider.from_market_config(config)
    return RandomMarketDataProvider(seed=seed)


__all__ = [
    "HttpMarketDataProvider",
    "MarketDataError",
    "MarketDataProvider",
    "RandomMarketDataProvider",
    "create_market_provider",
]
