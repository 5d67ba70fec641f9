"""阶段分析器。 / Stage Analyzer.

把阶段名映射为 (score, analysis, details)。只读取阶段名，不读取 Council 状态；
分数从阶段专属区间 [floor, 100) 中抽取。
/ Maps a stage name to (score, analysis, details). Reads nothing but the stage
name; the score is drawn from the stage-specific range [floor, 100).

未知阶段名返回零分的 "Analysis unavailable"，不抛异常。
/ Unknown stage names yield a zero-score "Analysis unavailable" result.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from cryptocouncil.engine.scoring import RandomScoringStrategy, ScoringStrategy
from cryptocouncil.primitives.models import (
    STAGE_DESIGN,
    STAGE_MARKET,
    STAGE_NAMES,
    STAGE_ON_CHAIN,
    STAGE_SOCIAL,
    STAGE_VALUE,
    StageResult,
)

logger = logging.getLogger(__name__)

STAGE_SCORE_CEILING = 100

# 各阶段分数下限 / Per-stage lower bound (inclusive)
STAGE_SCORE_FLOORS: Dict[str, int] = {
    STAGE_ON_CHAIN: 60,
    STAGE_SOCIAL: 50,
    STAGE_MARKET: 40,
    STAGE_DESIGN: 70,
    STAGE_VALUE: 55,
}

UNAVAILABLE_ANALYSIS = "Analysis unavailable"


def _tier(score: int) -> str:
    if score >= 85:
        return "strong"
    if score >= 65:
        return "solid"
    return "weak"


def _on_chain_details(score: int) -> Dict[str, Any]:
    return {
        "github": {
            "strong": "Daily commits from a wide contributor base",
            "solid": "Steady weekly commits, small core team",
            "weak": "Sporadic commits, repo mostly dormant",
        }[_tier(score)],
        "transactions": {
            "strong": "Transaction count trending up with organic wallet growth",
            "solid": "Stable transaction volume, no unusual spikes",
            "weak": "Thin activity dominated by a few wallets",
        }[_tier(score)],
    }


def _social_details(score: int) -> Dict[str, Any]:
    return {
        "twitter": {
            "strong": "Mentions surging, KOLs engaging without paid shills",
            "solid": "Consistent mentions, mostly positive tone",
            "weak": "Quiet timeline, engagement looks botted",
        }[_tier(score)],
        "community": {
            "strong": "Discord and Telegram buzzing around the clock",
            "solid": "Active core community, moderate growth",
            "weak": "Channels drying up, mods doing most of the talking",
        }[_tier(score)],
    }


def _market_details(score: int) -> Dict[str, Any]:
    return {
        "volume": {
            "strong": "24h volume well above the 30 day average",
            "solid": "Volume in line with recent averages",
            "weak": "Volume fading, order books thin",
        }[_tier(score)],
        "liquidity": {
            "strong": "Deep liquidity across major venues",
            "solid": "Adequate liquidity for retail size",
            "weak": "Shallow pools, slippage hits hard",
        }[_tier(score)],
    }


def _design_details(score: int) -> Dict[str, Any]:
    return {
        "branding": {
            "strong": "Instantly recognizable, meme-ready branding",
            "solid": "Clean and consistent visual identity",
            "weak": "Generic branding that blends into the crowd",
        }[_tier(score)],
        "website": {
            "strong": "Polished site with clear docs and roadmap",
            "solid": "Functional site, docs could use work",
            "weak": "Template site with broken links",
        }[_tier(score)],
    }


def _value_details(score: int) -> Dict[str, Any]:
    return {
        "utility": {
            "strong": "Token is core to a product people actually use",
            "solid": "Some real utility beyond speculation",
            "weak": "Utility is mostly promises on a roadmap",
        }[_tier(score)],
        "competition": {
            "strong": "Clear edge over direct competitors",
            "solid": "Holds its own in a crowded niche",
            "weak": "Outclassed by several established projects",
        }[_tier(score)],
    }


_DETAIL_BUILDERS: Dict[str, Callable[[int], Dict[str, Any]]] = {
    STAGE_ON_CHAIN: _on_chain_details,
    STAGE_SOCIAL: _social_details,
    STAGE_MARKET: _market_details,
    STAGE_DESIGN: _design_details,
    STAGE_VALUE: _value_details,
}

_TIER_VERDICTS = {
    "strong": "looking seriously strong",
    "solid": "holding up respectably",
    "weak": "raising some red flags",
}


class StageAnalyzer:
    """阶段分析器：对已声明的阶段名为全函数，域外降级。

    / Total over the declared stage names; degrades outside them.
    """

    def __init__(self, strategy: Optional[ScoringStrategy] = None):
        self._strategy = strategy if strategy is not None else RandomScoringStrategy()

    def analyze_stage(self, stage_name: str) -> StageResult:
        floor = STAGE_SCORE_FLOORS.get(stage_name)
        if floor is None:
            logger.warning(f"未知阶段: {stage_name!r}，返回零分结果")
            return StageResult(score=0, analysis=UNAVAILABLE_ANALYSIS, details={})

        score = self._strategy.draw(floor, STAGE_SCORE_CEILING)
        details = _DETAIL_BUILDERS[stage_name](score)
        analysis = f"{stage_name}: {score}/100, {_TIER_VERDICTS[_tier(score)]}."
        logger.debug(f"阶段分析完成: {stage_name} -> {score}")
        return StageResult(score=score, analysis=analysis, details=details)

    def analyze_all(self) -> List[StageResult]:
        """批量模式：按规范顺序分析全部 5 个阶段。 / Batch mode: all stages in canonical order."""
        return [self.analyze_stage(name) for name in STAGE_NAMES]
