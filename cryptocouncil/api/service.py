# service.py
# =============================================================================
# 公共 API — 委员会服务入口。
#
# CouncilService 把配置、注册表、工厂、阶段分析器、评分汇总器、行情数据源
# 和文本渲染串起来。一个入站 Trigger 产生一次状态转换和一条出站文本。
#
# 会话寻址：优先使用 council_id；未提供 id 时，只有恰好一个候选会话才会
# 被选中，多个候选时返回歧义提示而不是猜测。
# =============================================================================

"""公共 API — 委员会服务入口。"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from cryptocouncil.api.triggers import (
    INTENT_CONFIRM,
    INTENT_NEXT,
    INTENT_RATE,
    Trigger,
    parse_trigger,
)
from cryptocouncil.config import CouncilConfig, CouncilConfigLoader
from cryptocouncil.engine.aggregator import RatingAggregator
from cryptocouncil.engine.analyzer import StageAnalyzer
from cryptocouncil.engine.errors import CouncilNotFoundError, InvalidTransitionError
from cryptocouncil.engine.factory import CouncilFactory
from cryptocouncil.engine.scoring import RandomScoringStrategy, ScoringStrategy
from cryptocouncil.engine.store import CouncilStore, InMemoryCouncilStore
from cryptocouncil.formatter import (
    format_assembly,
    format_stage,
    format_summary,
    join_chunks,
    paginate_report,
)
from cryptocouncil.market import MarketDataError, MarketDataProvider, create_market_provider
from cryptocouncil.primitives.events import CouncilEvent
from cryptocouncil.primitives.models import (
    STATUS_ACTIVE,
    STATUS_COMPLETE,
    STATUS_PENDING,
    Council,
    VerdictReport,
)

logger = logging.getLogger(__name__)

# 类型别名：支持同步和异步回调 / Type alias: supports sync and async callbacks
ProgressCallback = Union[
    Callable[[CouncilEvent], Awaitable[None]],
    Callable[[CouncilEvent], None],
]

NOT_FOUND_OR_NOT_ACTIVE = "Council not found or not active"
NO_PENDING_COUNCIL = "No active councils to confirm. Try starting a new one!"
NO_COUNCIL_IN_PROGRESS = "No council in progress. Try 'rate BTC' to start one!"
DEFAULT_REPLY = "I'm not sure what you're asking. Try 'rate BTC' or 'confirm'."


class CouncilService:
    """委员会服务编排器。 / Council service orchestrator."""

    def __init__(
        self,
        config: Optional[CouncilConfig] = None,
        store: Optional[CouncilStore] = None,
        strategy: Optional[ScoringStrategy] = None,
        market_provider: Optional[MarketDataProvider] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self._config = config if config is not None else CouncilConfig()
        if strategy is None:
            strategy = RandomScoringStrategy(seed=self._config.random_seed)
        self._strategy = strategy
        # 空的注册表 len() == 0，不能用 `or` 判断 / an empty store is falsy, test against None
        if store is None:
            store = InMemoryCouncilStore(ttl_seconds=self._config.ttl_seconds)
        self._store = store
        self._analyzer = StageAnalyzer(self._strategy)
        self._factory = CouncilFactory(
            store=self._store,
            strategy=self._strategy,
            analyzer=self._analyzer,
            analyze_on_create=self._config.analyze_on_create,
        )
        self._aggregator = RatingAggregator(
            strategy=self._strategy, rating_phase=self._config.rating_phase
        )
        if market_provider is None:
            market_provider = create_market_provider(
                self._config.market, seed=self._config.random_seed
            )
        self._market = market_provider
        self._on_progress = on_progress

    @classmethod
    def from_config(
        cls,
        config: Optional[dict] = None,
        config_file: Optional[str] = None,
        **kwargs,
    ) -> CouncilService:
        """按 代码 > 配置文件 > 环境变量 的优先级加载配置后创建服务。"""
        loader = CouncilConfigLoader(config=config, config_file=config_file)
        logger.info(f"委员会配置: {loader.summary()}")
        return cls(config=loader.resolve(), **kwargs)

    @property
    def config(self) -> CouncilConfig:
        return self._config

    @property
    def store(self) -> CouncilStore:
        return self._store

    async def _emit(self, event: CouncilEvent) -> None:
        """触发进度回调（支持同步和异步回调）。 / Emit progress callback (sync and async)."""
        if self._on_progress is None:
            return
        result = self._on_progress(event)
        if inspect.isawaitable(result):
            await result

    # -------------------------------------------------------------------------
    # 入站分发 / Inbound dispatch
    # -------------------------------------------------------------------------

    async def handle_message(self, text: str) -> str:
        trigger = parse_trigger(text, self._config.supported_symbols)
        if trigger is None:
            return DEFAULT_REPLY
        return await self.handle(trigger)

    async def handle(self, trigger: Trigger) -> str:
        if trigger.intent == INTENT_RATE and trigger.crypto_symbol:
            return await self.rate(trigger.crypto_symbol)
        if trigger.intent == INTENT_CONFIRM:
            return await self.confirm(trigger.council_id)
        if trigger.intent == INTENT_NEXT:
            return await self.next_stage(trigger.council_id)
        return DEFAULT_REPLY

    # -------------------------------------------------------------------------
    # 生命周期操作 / Lifecycle operations
    # -------------------------------------------------------------------------

    async def rate(self, symbol: str) -> str:
        """组建新委员会并返回组建提示。 / Assemble a council and announce it."""
        crypto = symbol.strip().lstrip("$").upper()
        if crypto not in self._config.supported_symbols:
            return (
                f"Sorry, couldn't assemble a council for ${crypto}. "
                f"Supported: {', '.join(self._config.supported_symbols)}."
            )

        for council_id in self._store.evict_expired():
            await self._emit(CouncilEvent(type="council_evicted", council_id=council_id))

        token_data = None
        try:
            token_data = await self._market.fetch(crypto)
        except MarketDataError as e:
            # 行情缺失不影响评审 / a missing snapshot does not block the council
            logger.warning(f"${crypto} 行情获取失败，继续组建委员会: {e}")
            await self._emit(CouncilEvent(
                type="error", council_id="", crypto=crypto,
                detail={"stage": "market_data", "error": str(e)},
            ))

        council = self._factory.create_council(crypto, token_data=token_data)
        await self._emit(CouncilEvent(
            type="council_created", council_id=council.id, crypto=crypto,
            status=council.status,
            detail={"members": council.member_names},
        ))
        return format_assembly(council)

    async def confirm(self, council_id: Optional[str] = None) -> str:
        """确认委员会并立即收集评分，返回分片后的裁决文本。

        / Confirm the council, collect ratings right away and return the
        paginated verdict.
        """
        council_id, error = self._resolve(council_id, [STATUS_PENDING], NO_PENDING_COUNCIL)
        if error:
            return error
        if not self._store.confirm(council_id):
            return NOT_FOUND_OR_NOT_ACTIVE
        await self._emit(CouncilEvent(
            type="council_confirmed", council_id=council_id,
            crypto=self._store.get(council_id).crypto, status=STATUS_ACTIVE,
        ))
        return await self.collect_ratings(council_id)

    async def collect_ratings(self, council_id: str) -> str:
        """收集评分；会话不存在或不是 active 时返回否定结果且不做任何修改。"""
        report = self.collect_report(council_id)
        if report is None:
            return NOT_FOUND_OR_NOT_ACTIVE
        await self._emit(CouncilEvent(
            type="council_completed", council_id=council_id, crypto=report.crypto,
            status=STATUS_COMPLETE,
            detail={"risk_level": report.risk_level, "sentiment": report.sentiment},
        ))
        chunks = paginate_report(report, self._config.max_chunk_length)
        return join_chunks(chunks)

    def collect_report(self, council_id: str) -> Optional[VerdictReport]:
        """结构化版本的 collect_ratings；守卫失败时返回 None。"""
        try:
            handle = self._store.acquire(council_id)
            return self._aggregator.collect_ratings(handle)
        except (CouncilNotFoundError, InvalidTransitionError) as e:
            logger.info(f"[{council_id}] 评分收集被拒绝: {e}")
            return None

    async def next_stage(self, council_id: Optional[str] = None) -> str:
        """渐进模式前进一个阶段；pending 会话先被确认。

        / Progressive mode: advance one stage; a pending council is confirmed first.
        """
        council_id, error = self._resolve(
            council_id, [STATUS_ACTIVE, STATUS_PENDING], NO_COUNCIL_IN_PROGRESS
        )
        if error:
            return error

        if self._store.confirm(council_id):
            await self._emit(CouncilEvent(
                type="council_confirmed", council_id=council_id,
                crypto=self._store.get(council_id).crypto, status=STATUS_ACTIVE,
            ))

        try:
            handle = self._store.acquire(council_id)
            stage, summary = handle.advance_stage(self._analyzer.analyze_stage)
        except (CouncilNotFoundError, InvalidTransitionError) as e:
            logger.info(f"[{council_id}] 阶段推进被拒绝: {e}")
            return NOT_FOUND_OR_NOT_ACTIVE

        council = self._store.get(council_id)
        if summary is not None:
            await self._emit(CouncilEvent(
                type="council_completed", council_id=council_id, crypto=council.crypto,
                status=council.status, detail={"average_score": summary.average_score},
            ))
            return format_summary(summary)

        await self._emit(CouncilEvent(
            type="stage_completed", council_id=council_id, crypto=council.crypto,
            status=council.status,
            detail={"stage": stage.name, "score": stage.score},
        ))
        return format_stage(council.crypto, stage, council.current_stage, len(council.stages))

    def analyze_all_stages(self, council_id: str) -> Optional[Council]:
        """批量模式：分析全部阶段，不移动 current_stage。守卫失败时返回 None。"""
        try:
            handle = self._store.acquire(council_id)
            handle.write_stage_results(self._analyzer.analyze_all())
        except (CouncilNotFoundError, InvalidTransitionError) as e:
            logger.info(f"[{council_id}] 批量分析被拒绝: {e}")
            return None
        return self._store.get(council_id)

    def get_council(self, council_id: str) -> Council:
        return self._store.get(council_id)

    # -------------------------------------------------------------------------
    # 会话寻址 / Council addressing
    # -------------------------------------------------------------------------

    def _resolve(
        self,
        council_id: Optional[str],
        statuses: List[str],
        empty_message: str,
    ) -> Tuple[Optional[str], Optional[str]]:
        """返回 (council_id, error_message)。

        显式 id 直接使用；否则按 statuses 顺序查找，某个状态下恰好一个候选时选中，
        多个候选时返回歧义提示。
        """
        if council_id:
            return council_id, None
        for status in statuses:
            candidates = self._store.list_by_status(status)
            if len(candidates) == 1:
                return candidates[0].id, None
            if len(candidates) > 1:
                ids = ", ".join(f"#{c.id}" for c in candidates)
                logger.warning(f"未指定会话 id，存在 {len(candidates)} 个 {status} 会话")
                return None, (
                    f"Multiple councils are {status}: {ids}. "
                    f"Reply with the council id, e.g. 'confirm #{candidates[0].id}'."
                )
        return None, empty_message
