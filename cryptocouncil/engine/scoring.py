"""评分策略。 / Scoring strategies.

Stage Analyzer 与 Rating Aggregator 的所有随机抽取都经过 ScoringStrategy，
默认实现是可设种子的随机区间生成器，测试可注入固定种子或替身。
/ Every random draw of the Stage Analyzer and Rating Aggregator goes through a
ScoringStrategy. The default is a seedable random-range generator; tests can
pin a seed or inject a stand-in.
"""

import math
import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class ScoringStrategy(ABC):
    """评分抽取接口。 / Score drawing interface."""

    @abstractmethod
    def draw(self, lower: int, upper: int) -> int:
        """返回 floor(lower + r * (upper - lower))，r ∈ [0, 1)。

        / Return floor(lower + r * (upper - lower)) with r in [0, 1), i.e. an
        integer in [lower, upper).
        """

    @abstractmethod
    def sample(self, population: Sequence[T], k: int) -> list:
        """无重复抽取 k 个元素（无偏排列后取前 k 个）。 / Draw k distinct items."""


class RandomScoringStrategy(ScoringStrategy):
    """基于 random.Random 的默认策略；传入 seed 即可复现。

    / Default strategy backed by random.Random; pass a seed for reproducibility.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def draw(self, lower: int, upper: int) -> int:
        return int(math.floor(lower + self._rng.random() * (upper - lower)))

    def sample(self, population: Sequence[T], k: int) -> list:
        # 完整洗牌后取前 k 个 / full shuffle, then take the first k
        pool = list(population)
        self._rng.shuffle(pool)
        return pool[:k]
