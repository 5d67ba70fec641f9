# http_provider.py
# =============================================================================
# HTTP 行情数据源
#
# 职责：
#   - 以 GET {url}/{SYMBOL} 请求价格服务，解析 JSON 为 MarketSnapshot
#   - 兼容 camelCase（volume24h）与 snake_case（volume_24h）字段名
#   - 失败时按 max_retries 重试，耗尽后抛出 MarketDataError
#
# 认证方式：
#   - 配置了 api_key 时发送 Authorization: Bearer <key>
#
# 响应格式：
#   {"price": 1.0, "volume24h": 2.0, "marketCap": 3.0,
#    "priceChange24h": -1.5, "holders": 100, "liquidityUSD": 4.0}
#   也接受包在 {"data": {...}} 中的同一结构。
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from cryptocouncil.market.provider import MarketDataError, MarketDataProvider
from cryptocouncil.primitives.models import MarketSnapshot

logger = logging.getLogger(__name__)

# 快照字段 → 可接受的响应键名（按优先级）
_FIELD_ALIASES: Dict[str, tuple] = {
    "price": ("price",),
    "volume_24h": ("volume_24h", "volume24h"),
    "market_cap": ("market_cap", "marketCap"),
    "price_change_24h": ("price_change_24h", "priceChange24h"),
    "holders": ("holders",),
    "liquidity_usd": ("liquidity_usd", "liquidityUSD", "liquidityUsd"),
}


class HttpMarketDataProvider(MarketDataProvider):
    """HTTP 价格服务客户端。

    通过 httpx 异步请求价格服务，返回不可变的 MarketSnapshot。
    transport 参数用于测试时注入 httpx.MockTransport。
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

    async def fetch(self, symbol: str) -> MarketSnapshot:
        """请求并解析行情。

        Raises:
            MarketDataError: 重试耗尽或响应无法解析。
        """
        endpoint = f"{self._base_url}/{symbol.upper()}"
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        last_error: Optional[Exception] = None
        for attempt in range(self._max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout, transport=self._transport
                ) as client:
                    response = await client.get(endpoint, headers=headers)
                    response.raise_for_status()
                    return self._parse_snapshot(response.json())

            except httpx.HTTPStatusError as e:
                last_error = e
                logger.warning(
                    "行情请求失败 (HTTP %d)，第 %d/%d 次: %s",
                    e.response.status_code,
                    attempt + 1,
                    self._max_retries + 1,
                    e.response.text[:200],
                )
            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    "行情请求异常，第 %d/%d 次: %s",
                    attempt + 1,
                    self._max_retries + 1,
                    e,
                )
            except ValueError as e:
                # 响应不是合法 JSON 或字段非法，重试无意义
                raise MarketDataError(f"${symbol} 行情响应无法解析: {e}") from e

        raise MarketDataError(
            f"${symbol} 行情请求在 {self._max_retries + 1} 次尝试后仍失败: "
            f"{last_error}"
        )

    @staticmethod
    def _parse_snapshot(payload: Any) -> MarketSnapshot:
        """从响应 JSON 中提取快照字段。

        Raises:
            ValueError: 缺少字段或数值非法。
        """
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise ValueError(f"响应不是 JSON 对象: {str(payload)[:200]}")

        values: Dict[str, Any] = {}
        for name, aliases in _FIELD_ALIASES.items():
            for alias in aliases:
                if alias in payload and payload[alias] is not None:
                    values[name] = payload[alias]
                    break
            else:
                raise ValueError(f"响应缺少字段: {name}")

        snapshot = MarketSnapshot(
            price=float(values["price"]),
            volume_24h=float(values["volume_24h"]),
            market_cap=float(values["market_cap"]),
            price_change_24h=float(values["price_change_24h"]),
            holders=int(values["holders"]),
            liquidity_usd=float(values["liquidity_usd"]),
        )
        for name, value in snapshot.to_dict().items():
            if name != "price_change_24h" and value < 0:
                raise ValueError(f"字段 {name} 不能为负数: {value}")
        return snapshot

    @classmethod
    def from_market_config(cls, config) -> HttpMarketDataProvider:
        """从 MarketConfig 创建实例。

        Raises:
            ValueError: 缺少 url。
        """
        if not config.url:
            raise ValueError("HTTP 行情模式需要显式配置 market.url")
        return cls(
            url=config.url,
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )
