# engine/__init__.py
# =============================================================================
# 委员会引擎模块 — 工厂、注册表、阶段分析、评分汇总。
# =============================================================================

from cryptocouncil.engine.aggregator import RatingAggregator
from cryptocouncil.engine.analyzer import StageAnalyzer
from cryptocouncil.engine.errors import (
    CouncilError,
    CouncilNotFoundError,
    DuplicateCouncilError,
    InvalidTransitionError,
)
from cryptocouncil.engine.factory import CouncilFactory
from cryptocouncil.engine.scoring import RandomScoringStrategy, ScoringStrategy
from cryptocouncil.engine.store import ActiveCouncilHandle, CouncilStore, InMemoryCouncilStore

__all__ = [
    "ActiveCouncilHandle",
    "CouncilError",
    "CouncilFactory",
    "CouncilNotFoundError",
    "CouncilStore",
    "DuplicateCouncilError",
    "InMemoryCouncilStore",
    "InvalidTransitionError",
    "RandomScoringStrategy",
    "RatingAggregator",
    "ScoringStrategy",
    "StageAnalyzer",
]
