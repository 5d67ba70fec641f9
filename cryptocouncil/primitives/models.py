# models.py
# =============================================================================
# 本模块定义加密货币评审委员会（Council）引擎的核心数据模型。
# / Core data models for the crypto council rating engine.
#
# 包含 / Contains: Member、Stage、StageResult、StageSummary、Rating、
#       MarketSnapshot、Council、VerdictReport 以及状态/风险/情绪常量。
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# -----------------------------------------------------------------------------
# 状态机 / State machine
# -----------------------------------------------------------------------------

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_COMPLETE = "complete"

# 状态只能前进 / Status only moves forward
STATUS_ORDER: Dict[str, int] = {
    STATUS_PENDING: 0,
    STATUS_ACTIVE: 1,
    STATUS_COMPLETE: 2,
}

RISK_LOW = "low"
RISK_MEDIUM = "medium"
RISK_HIGH = "high"

SENTIMENT_BULLISH = "bullish"
SENTIMENT_NEUTRAL = "neutral"
SENTIMENT_BEARISH = "bearish"

# 评分阶段：quick = 1-10 快评，analysis = 60-100 成员分析
# / Rating phases: quick = 1-10 per-member rating, analysis = 60-100 member analysis
RATING_PHASE_QUICK = "quick"
RATING_PHASE_ANALYSIS = "analysis"
RATING_PHASES = (RATING_PHASE_QUICK, RATING_PHASE_ANALYSIS)

# 每个委员会固定 3 名互不相同的成员 / every council seats exactly 3 distinct members
COUNCIL_SIZE = 3

# -----------------------------------------------------------------------------
# 分析阶段 / Analysis stages (canonical order is fixed)
# -----------------------------------------------------------------------------

STAGE_ON_CHAIN = "On-chain Analysis"
STAGE_SOCIAL = "Social Sentiment"
STAGE_MARKET = "Market Insights"
STAGE_DESIGN = "Design and Art"
STAGE_VALUE = "Value Proposition"

STAGE_NAMES = (
    STAGE_ON_CHAIN,
    STAGE_SOCIAL,
    STAGE_MARKET,
    STAGE_DESIGN,
    STAGE_VALUE,
)


def to_ten_point_scale(score: float, rating_phase: str) -> float:
    """把成员评分换算到 1-10 刻度。 / Convert a member rating to the 1-10 scale.

    quick 阶段本身就是 1-10，原样返回；analysis 阶段 (60-100) 除以 10。
    这是两种刻度之间唯一的换算点。
    / quick ratings are already 1-10; analysis ratings (60-100) are divided by 10.
    This is the only conversion between the two scales.
    """
    if rating_phase == RATING_PHASE_ANALYSIS:
        return score / 10.0
    return float(score)


@dataclass(frozen=True)
class Member:
    """委员会成员人设。 / Council member persona."""
    name: str
    expertise: str
    catchphrase: str


@dataclass
class Stage:
    """单个分析阶段实例。details 的结构由 name 决定。

    / One analysis stage instance. The shape of ``details`` depends on ``name``.
    """

    name: str
    completed: bool = False
    score: int = 0  # 0-100
    analysis: str = ""
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StageResult:
    """Stage Analyzer 的单次输出。 / Single Stage Analyzer output."""
    score: int
    analysis: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StageSummary:
    """渐进模式完成后的汇总。 / Summary produced when progressive mode finishes."""
    crypto: str
    council_id: str
    average_score: float  # 全部阶段分数的均值 (0-100) / mean of all stage scores
    stages: List[Stage]


@dataclass(frozen=True)
class Rating:
    """成员评分。score 的刻度取决于 rating_phase。 / Member rating on the phase's scale."""
    member_name: str
    score: int
    comment: str


@dataclass(frozen=True)
class MarketSnapshot:
    """行情快照 — 创建 Council 时注入，之后不再刷新。

    / Market data snapshot injected at council creation and never refreshed.
    除 price_change_24h 外均为非负数。
    """

    price: float
    volume_24h: float
    market_cap: float
    price_change_24h: float  # 可为负 / signed
    holders: int
    liquidity_usd: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": self.price,
            "volume_24h": self.volume_24h,
            "market_cap": self.market_cap,
            "price_change_24h": self.price_change_24h,
            "holders": self.holders,
            "liquidity_usd": self.liquidity_usd,
        }


@dataclass
class Council:
    """评审会话聚合根。 / Council session aggregate.

    不变量 / Invariants:
    - crypto 创建后不可变，且为大写代码 / crypto is upper-case and immutable
    - members 恰好 COUNCIL_SIZE (3) 个且互不相同 / exactly COUNCIL_SIZE (3) distinct members
    - status 只能 pending → active → complete / status only moves forward
    - current_stage 单调递增 / current_stage never decreases
    - complete 之后所有评分字段冻结 / score fields frozen once complete

    字段只应通过 CouncilStore / ActiveCouncilHandle 修改。
    / Fields are only written through CouncilStore / ActiveCouncilHandle.
    """

    id: str
    crypto: str
    members: List[Member]
    stages: List[Stage]
    status: str = STATUS_PENDING
    current_stage: int = 0
    ratings: Dict[str, Rating] = field(default_factory=dict)
    technical_score: int = 0
    fundamental_score: int = 0
    meme_potential: int = 0
    risk_level: str = RISK_MEDIUM
    analysis: str = ""
    token_data: Optional[MarketSnapshot] = None
    rating_phase: Optional[str] = None
    created_at: float = 0.0  # time.monotonic()，用于过期淘汰 / used by TTL eviction

    @property
    def member_names(self) -> List[str]:
        return [m.name for m in self.members]

    @property
    def is_complete(self) -> bool:
        return self.status == STATUS_COMPLETE


@dataclass(frozen=True)
class VerdictReport:
    """最终裁决的结构化结果，文本渲染交给 VerdictFormatter。

    / Structured verdict; text rendering is the VerdictFormatter's job.
    """

    council_id: str
    crypto: str
    average_rating: float  # rating_phase 刻度上的均值 / mean on the phase's scale
    rating_phase: str
    technical_score: int
    fundamental_score: int
    meme_potential: int
    risk_level: str
    sentiment: str
    narrative: str
    ratings: List[Rating]

    @property
    def rating_scale_max(self) -> int:
        return 100 if self.rating_phase == RATING_PHASE_ANALYSIS else 10

    @property
    def overall_on_ten_scale(self) -> float:
        return to_ten_point_scale(self.average_rating, self.rating_phase)
