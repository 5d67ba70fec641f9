"""委员会工厂。 / Council Factory.

为一个代币代码组建新的 Council：生成 id，从名册中无重复抽取 3 名成员，
按规范顺序初始化 5 个阶段，并注册到 CouncilStore。
/ Assembles a new council for a ticker: fresh id, 3 distinct members drawn
from the roster, 5 zeroed stages in canonical order, registered in the store.
"""

import logging
import secrets
import string
from typing import Optional, Sequence

from cryptocouncil.agents.roster import MEMBER_ROSTER
from cryptocouncil.engine.analyzer import StageAnalyzer
from cryptocouncil.engine.errors import DuplicateCouncilError
from cryptocouncil.engine.scoring import RandomScoringStrategy, ScoringStrategy
from cryptocouncil.engine.store import CouncilStore
from cryptocouncil.primitives.models import (
    COUNCIL_SIZE,
    STAGE_NAMES,
    STATUS_PENDING,
    Council,
    MarketSnapshot,
    Member,
    Stage,
)

logger = logging.getLogger(__name__)

COUNCIL_ID_LENGTH = 8  # 36^8 ≈ 2^41
_ID_ALPHABET = string.ascii_lowercase + string.digits
_MAX_ID_ATTEMPTS = 5


def generate_council_id(length: int = COUNCIL_ID_LENGTH) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class CouncilFactory:
    """Council 工厂。 / Council factory."""

    def __init__(
        self,
        store: CouncilStore,
        strategy: Optional[ScoringStrategy] = None,
        roster: Sequence[Member] = MEMBER_ROSTER,
        analyzer: Optional[StageAnalyzer] = None,
        analyze_on_create: bool = False,
    ):
        if len(set(m.name for m in roster)) < COUNCIL_SIZE:
            raise ValueError(
                f"名册至少需要 {COUNCIL_SIZE} 名不同成员，当前: {len(roster)}"
            )
        self._store = store
        self._strategy = strategy if strategy is not None else RandomScoringStrategy()
        self._roster = tuple(roster)
        self._analyzer = analyzer if analyzer is not None else StageAnalyzer(self._strategy)
        self._analyze_on_create = analyze_on_create

    def create_council(
        self,
        crypto: str,
        token_data: Optional[MarketSnapshot] = None,
    ) -> Council:
        """组建并注册新的 Council。代币合法性由调用方预先校验。

        / Assemble and register a new council. The caller validates the symbol.
        """
        members = self._strategy.sample(self._roster, COUNCIL_SIZE)
        stages = [Stage(name=name) for name in STAGE_NAMES]

        if self._analyze_on_create:
            # 批量模式：写入全部阶段，current_stage 保持 0
            # / batch mode: every stage written, current_stage stays at 0
            for stage, result in zip(stages, self._analyzer.analyze_all()):
                stage.completed = True
                stage.score = result.score
                stage.analysis = result.analysis
                stage.details = dict(result.details)

        for attempt in range(_MAX_ID_ATTEMPTS):
            council = Council(
                id=generate_council_id(),
                crypto=crypto.upper(),
                members=members,
                stages=stages,
                status=STATUS_PENDING,
                current_stage=0,
                token_data=token_data,
            )
            try:
                self._store.create(council)
                break
            except DuplicateCouncilError:
                logger.warning(f"会话 id 冲突，第 {attempt + 1} 次重新生成: {council.id}")
        else:
            raise DuplicateCouncilError(council.id)

        logger.info(
            f"[{council.id}] 组建委员会 ${council.crypto}: "
            f"{', '.join(m.name for m in members)}"
        )
        return self._store.get(council.id)
