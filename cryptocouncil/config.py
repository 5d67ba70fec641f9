# config.py
# =============================================================================
# 委员会配置加载与合并模块 / Council config loading & merging module
#
# 职责 / Responsibilities:
#   - 定义委员会引擎配置的数据结构（CouncilConfig / MarketConfig）
#     / Define config data structures (CouncilConfig / MarketConfig)
#   - 实现三层优先级配置加载：代码传入 > 配置文件 > 环境变量
#     / Three-tier priority loading: code > config file > env vars
#   - 配置值非法时抛出 ConfigurationError
#     / Raise ConfigurationError on invalid values
# =============================================================================

from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from cryptocouncil.formatter import DEFAULT_MAX_CHUNK_LENGTH, MIN_CHUNK_LENGTH
from cryptocouncil.primitives.models import COUNCIL_SIZE, RATING_PHASE_QUICK, RATING_PHASES

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """配置缺失或非法时抛出的异常。"""
    pass


# =============================================================================
# 数据结构 / Data Structures
# =============================================================================

DEFAULT_SUPPORTED_SYMBOLS = ["BTC", "ETH", "SOL", "DOGE", "SHIB"]
_MARKET_PROVIDERS = ("random", "http")


@dataclass
class MarketConfig:
    """行情数据源配置。 / Market data provider config."""

    provider: str = "random"  # "random" | "http"
    url: Optional[str] = None  # http 模式必填 / required for "http"
    api_key: Optional[str] = None
    timeout: float = 10.0
    max_retries: int = 2

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MarketConfig:
        provider = str(data.get("provider") or "random").lower()
        if provider not in _MARKET_PROVIDERS:
            raise ConfigurationError(
                f"不支持的 market.provider: '{provider}'。"
                f"仅支持: {', '.join(_MARKET_PROVIDERS)}。"
            )
        if provider == "http" and not data.get("url"):
            raise ConfigurationError("market.provider 为 http 时必须配置 market.url")

        timeout = _as_float(data, "timeout", 10.0, key_prefix="market.")
        if timeout <= 0:
            raise ConfigurationError(f"market.timeout 必须 > 0，当前: {timeout}")
        max_retries = _as_int(data, "max_retries", 2, key_prefix="market.")
        if max_retries < 0:
            raise ConfigurationError(f"market.max_retries 不能为负数，当前: {max_retries}")

        return cls(
            provider=provider,
            url=data.get("url"),
            api_key=data.get("api_key"),
            timeout=timeout,
            max_retries=max_retries,
        )


@dataclass
class CouncilConfig:
    """委员会引擎运行时配置。 / Council engine runtime config."""

    council_size: int = COUNCIL_SIZE  # 只接受 3 / only 3 is accepted
    supported_symbols: List[str] = field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_SYMBOLS)
    )
    rating_phase: str = RATING_PHASE_QUICK  # "quick" (1-10) | "analysis" (60-100)
    random_seed: Optional[int] = None
    ttl_seconds: Optional[float] = None  # None 表示不淘汰 / None disables eviction
    max_chunk_length: int = DEFAULT_MAX_CHUNK_LENGTH
    analyze_on_create: bool = False
    market: MarketConfig = field(default_factory=MarketConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CouncilConfig:
        """从字典构建并校验配置。 / Build and validate config from a dict.

        Raises:
            ConfigurationError: 任一值类型或范围非法。
        """
        rating_phase = str(data.get("rating_phase", RATING_PHASE_QUICK)).lower()
        if rating_phase not in RATING_PHASES:
            raise ConfigurationError(
                f"不支持的 rating_phase: '{rating_phase}'。"
                f"仅支持: {', '.join(RATING_PHASES)}。"
            )

        council_size = _as_int(data, "council_size", COUNCIL_SIZE)
        if council_size != COUNCIL_SIZE:
            raise ConfigurationError(
                f"council_size 固定为 {COUNCIL_SIZE}，当前: {council_size}"
            )

        max_chunk_length = _as_int(data, "max_chunk_length", DEFAULT_MAX_CHUNK_LENGTH)
        if max_chunk_length < MIN_CHUNK_LENGTH:
            raise ConfigurationError(
                f"max_chunk_length 过小: {max_chunk_length}（至少 {MIN_CHUNK_LENGTH}）"
            )

        symbols = data.get("supported_symbols") or DEFAULT_SUPPORTED_SYMBOLS
        if isinstance(symbols, str):
            symbols = [s for s in re.split(r"[,\s]+", symbols) if s]

        ttl = _as_float(data, "ttl_seconds", None)
        if ttl is not None and ttl <= 0:
            raise ConfigurationError(f"ttl_seconds 必须 > 0，当前: {ttl}")

        return cls(
            council_size=council_size,
            supported_symbols=[str(s).upper() for s in symbols],
            rating_phase=rating_phase,
            random_seed=_as_int(data, "random_seed", None),
            ttl_seconds=ttl,
            max_chunk_length=max_chunk_length,
            analyze_on_create=_as_bool(data.get("analyze_on_create", False)),
            market=MarketConfig.from_dict(data.get("market") or {}),
        )


# =============================================================================
# 配置加载器 / Config Loader
# =============================================================================


class CouncilConfigLoader:
    """委员会配置加载器 — 实现三层优先级配置合并。
    / Council config loader — three-tier priority merging.

    优先级（高→低） / Priority (high→low):
    1. 代码传入（config 字典参数） / Code-level config dict
    2. 配置文件（YAML） / Config file (YAML)
    3. 环境变量（通过 ${VAR} 在 YAML 中引用） / Env vars (${VAR} in YAML)

    market 节按键合并，其他键整体覆盖。
    / The market section merges key by key; other keys override wholesale.
    """

    # 配置文件搜索路径（按优先级） / Config file search paths (by priority)
    _CONFIG_SEARCH_PATHS = [
        "council_config.yaml",
        "council_config.yml",
        "config/council_config.yaml",
        "config/council_config.yml",
    ]

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        config_file: Optional[str] = None,
    ):
        self._code_config = config or {}
        self._file_config: Dict[str, Any] = {}
        self._load_config_file(config_file)

    def _load_config_file(self, config_file: Optional[str]) -> None:
        if config_file:
            path = Path(config_file)
            if path.exists():
                self._file_config = self._read_yaml(path)
                logger.info("委员会配置文件已加载: %s", path)
            else:
                logger.warning("指定的委员会配置文件不存在: %s", path)
            return

        for search_path in self._CONFIG_SEARCH_PATHS:
            path = Path(search_path)
            if path.exists():
                self._file_config = self._read_yaml(path)
                logger.info("自动发现委员会配置文件: %s", path)
                return

        logger.debug("未发现委员会配置文件，使用代码配置与默认值")

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        """读取 YAML 文件并展开环境变量引用。 / Read YAML and expand env var refs."""
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"配置文件顶层必须是映射: {path}")
        return _expand_env_vars(raw)

    def resolve(self) -> CouncilConfig:
        """合并两层配置并构建 CouncilConfig。 / Merge layers and build a CouncilConfig."""
        merged: Dict[str, Any] = {}
        market: Dict[str, Any] = {}
        for layer in (self._file_config, self._code_config):
            for key, value in layer.items():
                if value is None:
                    continue
                if key == "market" and isinstance(value, dict):
                    market.update({k: v for k, v in value.items() if v is not None})
                else:
                    merged[key] = value
        merged["market"] = market
        return CouncilConfig.from_dict(merged)

    def summary(self) -> Dict[str, str]:
        """输出配置摘要（隐藏 API Key），用于日志/调试。 / Config summary with the API key masked."""
        cfg = self.resolve()
        return {
            "council_size": str(cfg.council_size),
            "rating_phase": cfg.rating_phase,
            "supported_symbols": ",".join(cfg.supported_symbols),
            "ttl_seconds": str(cfg.ttl_seconds),
            "market_provider": cfg.market.provider,
            "market_url": cfg.market.url or "(none)",
            "market_api_key": _mask_key(cfg.market.api_key),
        }


def load_config(
    config: Optional[Dict[str, Any]] = None,
    config_file: Optional[str] = None,
) -> CouncilConfig:
    return CouncilConfigLoader(config=config, config_file=config_file).resolve()


# =============================================================================
# 工具函数 / Utility Functions
# =============================================================================


def _expand_env_vars(obj: Any) -> Any:
    """递归展开字典/列表中的 ${ENV_VAR} 引用。 / Recursively expand ${ENV_VAR} refs in dicts/lists.

    支持格式 / Supported formats:
    - ${VAR_NAME}          → os.environ["VAR_NAME"]
    - ${VAR_NAME:-default} → os.environ.get("VAR_NAME", "default")
    """
    if isinstance(obj, str):
        def _replace(match):
            var_expr = match.group(1)
            if ":-" in var_expr:
                var_name, default = var_expr.split(":-", 1)
                return os.environ.get(var_name.strip(), default.strip())
            return os.environ.get(var_expr.strip(), match.group(0))

        return re.sub(r"\$\{([^}]+)\}", _replace, obj)

    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


def _as_int(
    data: Dict[str, Any], key: str, default: Optional[int], key_prefix: str = ""
) -> Optional[int]:
    """读取整数配置项；空值返回 default，无法转换时抛 ConfigurationError。"""
    value = data.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigurationError(f"{key_prefix}{key} 必须是整数，当前: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key_prefix}{key} 必须是整数，当前: {value!r}") from e
    if not number.is_integer():
        raise ConfigurationError(f"{key_prefix}{key} 必须是整数，当前: {value!r}")
    return int(number)


def _as_float(
    data: Dict[str, Any], key: str, default: Optional[float], key_prefix: str = ""
) -> Optional[float]:
    """读取数值配置项；空值返回 default，无法转换时抛 ConfigurationError。"""
    value = data.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigurationError(f"{key_prefix}{key} 必须是数值，当前: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key_prefix}{key} 必须是数值，当前: {value!r}") from e
    if math.isnan(number) or math.isinf(number):
        raise ConfigurationError(f"{key_prefix}{key} 必须是有限数值，当前: {value!r}")
    return number


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _mask_key(key: Optional[str]) -> str:
    """遮蔽 API Key，仅显示前 4 位和后 4 位。 / Mask API key, showing only first and last 4 chars."""
    if not key:
        return "(none)"
    if len(key) <= 12:
        return key[:3] + "***"
    return key[:4] + "..." + key[-4:]
