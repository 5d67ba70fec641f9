# store.py
# =============================================================================
# 委员会注册表 — 状态机守卫与会话存储。
# / Council registry — state-machine guards and session storage.
#
# 状态机 / State machine: pending → active → complete（只前进 / forward only）
#
# 职责 / Responsibilities:
#   - create / get / confirm / list_by_status / acquire / evict_expired
#   - 阶段与评分字段只能通过 ActiveCouncilHandle 修改，而 handle 只能从
#     active 状态的会话获取
#     / Stage & rating fields are only writable through an ActiveCouncilHandle,
#     which can only be obtained for an active council
#   - 每个会话一把锁，所有读-改-写都在锁内完成
#     / One lock per council; every read-modify-write happens under it
#   - 可选 TTL 过期淘汰，防止长期运行进程无限增长
#     / Optional TTL eviction so a long-running host does not grow unbounded
# =============================================================================

from __future__ import annotations

import copy
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from cryptocouncil.engine.errors import (
    CouncilNotFoundError,
    DuplicateCouncilError,
    InvalidTransitionError,
)
from cryptocouncil.primitives.models import (
    STATUS_ACTIVE,
    STATUS_COMPLETE,
    STATUS_PENDING,
    Council,
    Member,
    Rating,
    Stage,
    StageResult,
    StageSummary,
)

logger = logging.getLogger(__name__)


class ActiveCouncilHandle:
    """active 会话的可写句柄。 / Writable handle on an active council.

    只能由 CouncilStore.acquire() 创建。每个写操作都在会话锁内重新校验
    status == active，所以过期句柄不能写入已完成的会话。
    / Only created by CouncilStore.acquire(). Every write re-checks
    status == active under the council lock, so a stale handle cannot write
    to a completed council.
    """

    def __init__(self, council: Council, lock: threading.RLock):
        self._council = council
        self._lock = lock

    @property
    def id(self) -> str:
        return self._council.id

    @property
    def crypto(self) -> str:
        return self._council.crypto

    @property
    def members(self) -> List[Member]:
        return list(self._council.members)

    @property
    def status(self) -> str:
        return self._council.status

    def snapshot(self) -> Council:
        with self._lock:
            return copy.deepcopy(self._council)

    def _ensure_active(self, operation: str) -> None:
        # 调用方必须持有 self._lock / caller must hold self._lock
        if self._council.status != STATUS_ACTIVE:
            raise InvalidTransitionError(
                self._council.id, self._council.status, operation
            )

    def write_stage_results(self, results: Sequence[StageResult]) -> None:
        """批量模式写入全部阶段结果，不移动 current_stage。

        / Batch mode: write every stage result without moving current_stage.
        """
        with self._lock:
            self._ensure_active("analyze stages of")
            for stage, result in zip(self._council.stages, results):
                _apply_result(stage, result)

    def advance_stage(
        self, analyze: Callable[[str], StageResult]
    ) -> Tuple[Stage, Optional[StageSummary]]:
        """渐进模式：分析 stages[current_stage] 并前进一格。

        / Progressive mode: analyze stages[current_stage] and move forward one.

        最后一个阶段完成后会话转为 complete，并返回全部阶段的汇总。
        / After the last stage the council becomes complete and a summary of
        all stages is returned alongside.
        """
        with self._lock:
            self._ensure_active("advance")
            council = self._council
            if council.current_stage >= len(council.stages):
                raise InvalidTransitionError(council.id, council.status, "advance")

            stage = council.stages[council.current_stage]
            _apply_result(stage, analyze(stage.name))
            council.current_stage += 1

            summary = None
            if council.current_stage >= len(council.stages):
                scores = [s.score for s in council.stages]
                average = sum(scores) / len(scores)
                council.analysis = (
                    f"{council.crypto} stage review complete: "
                    f"average {average:.1f}/100 across {len(scores)} stages."
                )
                council.status = STATUS_COMPLETE
                summary = StageSummary(
                    crypto=council.crypto,
                    council_id=council.id,
                    average_score=average,
                    stages=copy.deepcopy(council.stages),
                )
                logger.info(f"[{council.id}] 全部阶段完成，会话结束")
            return copy.deepcopy(stage), summary

    def complete_with_ratings(
        self,
        *,
        ratings: Sequence[Rating],
        rating_phase: str,
        technical_score: int,
        fundamental_score: int,
        meme_potential: int,
        risk_level: str,
        analysis: str,
    ) -> None:
        """一次性提交评分结果并把会话置为 complete。

        / Commit the rating outcome in one step and mark the council complete.
        """
        with self._lock:
            self._ensure_active("collect ratings for")
            council = self._council
            council.ratings = {r.member_name: r for r in ratings}
            council.rating_phase = rating_phase
            council.technical_score = technical_score
            council.fundamental_score = fundamental_score
            council.meme_potential = meme_potential
            council.risk_level = risk_level
            council.analysis = analysis
            council.status = STATUS_COMPLETE
            logger.info(f"[{council.id}] 评分完成: risk={risk_level}")


def _apply_result(stage: Stage, result: StageResult) -> None:
    stage.completed = True
    stage.score = result.score
    stage.analysis = result.analysis
    stage.details = dict(result.details)


class CouncilStore(ABC):
    """委员会存储接口；测试可替换为内存替身，生产可替换为带过期的缓存。

    / Store interface: tests may substitute a fake, production a TTL cache.
    """

    @abstractmethod
    def create(self, council: Council) -> None:
        ...

    @abstractmethod
    def get(self, council_id: str) -> Council:
        """返回只读快照；不存在时抛 CouncilNotFoundError。"""

    @abstractmethod
    def confirm(self, council_id: str) -> bool:
        """pending → active。会话不存在或不是 pending 时返回 False。"""

    @abstractmethod
    def list_by_status(self, status: str) -> List[Council]:
        ...

    @abstractmethod
    def acquire(self, council_id: str) -> ActiveCouncilHandle:
        """获取 active 会话的写句柄。"""

    @abstractmethod
    def evict_expired(self, now: Optional[float] = None) -> List[str]:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class InMemoryCouncilStore(CouncilStore):
    """进程内注册表。 / In-process registry.

    注册表本身由一把 RLock 保护，每个会话另有独立的 RLock；跨会话操作无需协调。
    / The registry is guarded by one RLock and every council has its own;
    cross-council operations never coordinate.

    ttl_seconds 为 None 时不淘汰。 / ttl_seconds=None disables eviction.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._councils: Dict[str, Council] = {}  # 插入顺序 / insertion order
        self._council_locks: Dict[str, threading.RLock] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._councils)

    def __contains__(self, council_id: str) -> bool:
        with self._lock:
            return council_id in self._councils

    def _lookup(self, council_id: str) -> Tuple[Council, threading.RLock]:
        with self._lock:
            council = self._councils.get(council_id)
            if council is None:
                raise CouncilNotFoundError(council_id)
            return council, self._council_locks[council_id]

    def create(self, council: Council) -> None:
        if self._ttl_seconds is not None:
            self.evict_expired()
        with self._lock:
            if council.id in self._councils:
                raise DuplicateCouncilError(council.id)
            council.created_at = self._clock()
            self._councils[council.id] = council
            self._council_locks[council.id] = threading.RLock()
        logger.info(f"[{council.id}] 会话已注册: ${council.crypto}")

    def get(self, council_id: str) -> Council:
        council, lock = self._lookup(council_id)
        with lock:
            return copy.deepcopy(council)

    def confirm(self, council_id: str) -> bool:
        try:
            council, lock = self._lookup(council_id)
        except CouncilNotFoundError:
            logger.debug(f"[{council_id}] confirm 忽略：会话不存在")
            return False
        with lock:
            if council.status != STATUS_PENDING:
                logger.debug(
                    f"[{council_id}] confirm 忽略：当前状态为 {council.status}"
                )
                return False
            council.status = STATUS_ACTIVE
        logger.info(f"[{council_id}] 会话已确认")
        return True

    def list_by_status(self, status: str) -> List[Council]:
        with self._lock:
            entries = [
                (c, self._council_locks[cid]) for cid, c in self._councils.items()
            ]
        result = []
        for council, lock in entries:
            with lock:
                if council.status == status:
                    result.append(copy.deepcopy(council))
        return result

    def acquire(self, council_id: str) -> ActiveCouncilHandle:
        council, lock = self._lookup(council_id)
        with lock:
            if council.status != STATUS_ACTIVE:
                raise InvalidTransitionError(council_id, council.status, "acquire")
            return ActiveCouncilHandle(council, lock)

    def evict_expired(self, now: Optional[float] = None) -> List[str]:
        """淘汰存活超过 ttl_seconds 的会话，返回被淘汰的 id。

        / Drop councils older than ttl_seconds and return their ids.
        """
        if self._ttl_seconds is None:
            return []
        now = self._clock() if now is None else now
        with self._lock:
            expired = [
                cid for cid, c in self._councils.items()
                if now - c.created_at > self._ttl_seconds
            ]
            for cid in expired:
                del self._councils[cid]
                del self._council_locks[cid]
        if expired:
            logger.info(f"淘汰过期会话 {len(expired)} 个: {expired}")
        return expired
