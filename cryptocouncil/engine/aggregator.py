"""评分汇总器。 / Rating Aggregator.

对 active 会话生成成员评分、三个独立的 0-100 维度分、风险等级与情绪叙事，
并把会话置为 complete。
/ Produces member ratings, three independent 0-100 axis scores, a risk level
and a sentiment narrative for an active council, then completes it.

风险与情绪的阈值不对称（> 与 >=）：均分恰好 7 时风险为 medium、情绪为 bullish。
/ Risk and sentiment thresholds are asymmetric (> vs >=): an average of
exactly 7 is medium risk but bullish sentiment.
"""

import logging
from typing import Dict, Optional, Tuple

from cryptocouncil.agents.roster import comment_for
from cryptocouncil.engine.scoring import RandomScoringStrategy, ScoringStrategy
from cryptocouncil.engine.store import ActiveCouncilHandle
from cryptocouncil.primitives.models import (
    RATING_PHASE_ANALYSIS,
    RATING_PHASE_QUICK,
    RATING_PHASES,
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    SENTIMENT_BEARISH,
    SENTIMENT_BULLISH,
    SENTIMENT_NEUTRAL,
    Rating,
    VerdictReport,
    to_ten_point_scale,
)

logger = logging.getLogger(__name__)

# 各评分阶段的成员分数区间 [lower, upper) / Member score range per rating phase
MEMBER_SCORE_RANGES: Dict[str, Tuple[int, int]] = {
    RATING_PHASE_QUICK: (1, 11),
    RATING_PHASE_ANALYSIS: (60, 100),
}
AXIS_SCORE_RANGE = (0, 100)

NARRATIVES: Dict[str, str] = {
    SENTIMENT_BULLISH: (
        "{crypto} is looking absolutely based! Technical analysis is screaming "
        "moon mission, fundamentals are thicc, and the meme potential is off the "
        "charts! NFA but your grandkids will thank you for this one fam! 🚀"
    ),
    SENTIMENT_NEUTRAL: (
        "{crypto} giving mixed signals rn. The charts are crabbing harder than "
        "your ex's attitude. Might need to zoom out and DYOR. Keep some dry "
        "powder ready anon."
    ),
    SENTIMENT_BEARISH: (
        "{crypto} looking more sus than a 4am discord pump. Charts giving major "
        "bearish vibes, tokenomics looking shakier than a paper-handed trader. "
        "Might want to touch grass before aping in."
    ),
}


def classify_risk(rating_on_ten: float) -> str:
    if rating_on_ten > 7:
        return RISK_LOW
    if rating_on_ten > 4:
        return RISK_MEDIUM
    return RISK_HIGH


def classify_sentiment(rating_on_ten: float) -> str:
    if rating_on_ten >= 7:
        return SENTIMENT_BULLISH
    if rating_on_ten >= 4:
        return SENTIMENT_NEUTRAL
    return SENTIMENT_BEARISH


def render_narrative(sentiment: str, crypto: str) -> str:
    return NARRATIVES[sentiment].format(crypto=crypto)


class RatingAggregator:
    """评分汇总器。 / Rating aggregator.

    每个会话只能调用一次：提交时会话转为 complete，再次 acquire 会被 store 拒绝。
    / Callable once per council: the commit completes it and the store refuses
    any further acquire.
    """

    def __init__(
        self,
        strategy: Optional[ScoringStrategy] = None,
        rating_phase: str = RATING_PHASE_QUICK,
    ):
        if rating_phase not in RATING_PHASES:
            raise ValueError(
                f"不支持的 rating_phase: '{rating_phase}'。"
                f"仅支持: {', '.join(RATING_PHASES)}。"
            )
        self._strategy = strategy if strategy is not None else RandomScoringStrategy()
        self.rating_phase = rating_phase

    def collect_ratings(self, handle: ActiveCouncilHandle) -> VerdictReport:
        lower, upper = MEMBER_SCORE_RANGES[self.rating_phase]
        ratings = [
            Rating(
                member_name=member.name,
                score=self._strategy.draw(lower, upper),
                comment=comment_for(member.name),
            )
            for member in handle.members
        ]

        # 三个维度与成员评分相互独立 / axes are independent of member ratings
        technical = self._strategy.draw(*AXIS_SCORE_RANGE)
        fundamental = self._strategy.draw(*AXIS_SCORE_RANGE)
        meme = self._strategy.draw(*AXIS_SCORE_RANGE)

        average = sum(r.score for r in ratings) / len(ratings)
        on_ten = to_ten_point_scale(average, self.rating_phase)
        risk = classify_risk(on_ten)
        sentiment = classify_sentiment(on_ten)
        narrative = render_narrative(sentiment, handle.crypto)

        handle.complete_with_ratings(
            ratings=ratings,
            rating_phase=self.rating_phase,
            technical_score=technical,
            fundamental_score=fundamental,
            meme_potential=meme,
            risk_level=risk,
            analysis=narrative,
        )
        logger.info(
            f"[{handle.id}] ${handle.crypto} 均分 {average:.1f} "
            f"({self.rating_phase}), risk={risk}, sentiment={sentiment}"
        )

        return VerdictReport(
            council_id=handle.id,
            crypto=handle.crypto,
            average_rating=average,
            rating_phase=self.rating_phase,
            technical_score=technical,
            fundamental_score=fundamental,
            meme_potential=meme,
            risk_level=risk,
            sentiment=sentiment,
            narrative=narrative,
            ratings=ratings,
        )
