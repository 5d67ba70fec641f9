"""行情数据源接口与随机桩实现。 / Market data provider interface and random stub.

核心引擎不做 I/O：行情在引擎外被 await，然后作为值注入 Council。
/ The core never does I/O: market data is awaited outside and injected as a value.
"""

import logging
import random
from abc import ABC, abstractmethod
from typing import Optional

from cryptocouncil.primitives.models import MarketSnapshot

logger = logging.getLogger(__name__)


class MarketDataError(Exception):
    """行情获取失败（重试耗尽或响应无法解析）。"""
    pass


class MarketDataProvider(ABC):
    @abstractmethod
    async def fetch(self, symbol: str) -> MarketSnapshot:
        """获取代币行情快照。 / Fetch a snapshot for the ticker.

        Raises:
            MarketDataError: 无法获取或解析。
        """


class RandomMarketDataProvider(MarketDataProvider):
    """随机行情桩，用于演示与测试。 / Random stand-in for a real price feed."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    async def fetch(self, symbol: str) -> MarketSnapshot:
        rng = self._rng
        snapshot = MarketSnapshot(
            price=round(rng.uniform(0.0001, 1000.0), 6),
            volume_24h=round(rng.uniform(0.0, 1_000_000.0), 2),
            market_cap=round(rng.uniform(0.0, 10_000_000.0), 2),
            price_change_24h=round(rng.uniform(-20.0, 20.0), 2),
            holders=rng.randint(0, 100_000),
            liquidity_usd=round(rng.uniform(0.0, 500_000.0), 2),
        )
        logger.debug(f"随机行情 ${symbol}: price={snapshot.price}")
        return snapshot
