"""Simple random sampling strategies.

Every eligible item in a stratum has the same probability of selection.
The statistical, random and percentage methods share this selection rule and
differ only in how the total sample size is determined.
"""

import logging
from typing import List, Sequence

from audit_sampling.sampling.base import SamplingStrategy
from audit_sampling.sampling.types import SamplingConfig, SamplingMethod
from audit_sampling.scripts.rng import RandomSource
from audit_sampling.scripts.sample_size import calculate_percentage_sample_size
from audit_sampling.scripts.selection import select_random

logger = logging.getLogger("audit_sampling.sampling.simple")


class RandomSamplingStrategy(SamplingStrategy):
    """Strategy for simple random sampling.

    Simple random sampling is ideal when:
    - Items are homogeneous or already stratified
    - Each item should have an equal chance of being tested
    """

    @property
    def method(self) -> SamplingMethod:
        return SamplingMethod.RANDOM

    @property
    def display_name(self) -> str:
        return "Simple Random Sampling"

    @property
    def description(self) -> str:
        return (
            "Draw items at random without replacement, with equal probability "
            "for every eligible item."
        )

    def select(
        self,
        positions: Sequence[int],
        size: int,
        rng: RandomSource,
        config: SamplingConfig,
    ) -> List[int]:
        return select_random(positions, size, rng)


class StatisticalSamplingStrategy(RandomSamplingStrategy):
    """Strategy for statistical attribute sampling.

    The sample size follows from the confidence level, tolerable error rate
    and expected error rate with finite population correction.
    """

    @property
    def method(self) -> SamplingMethod:
        return SamplingMethod.STATISTICAL

    @property
    def display_name(self) -> str:
        return "Statistical Sampling"

    @property
    def description(self) -> str:
        return (
            "Size the sample from confidence level, tolerable error and expected "
            "error rate, then draw items at random. Best when results must be "
            "extrapolated to the population."
        )


class PercentageSamplingStrategy(RandomSamplingStrategy):
    """Strategy for fixed-percentage sampling."""

    @property
    def method(self) -> SamplingMethod:
        return SamplingMethod.PERCENTAGE

    @property
    def display_name(self) -> str:
        return "Percentage Sampling"

    @property
    def description(self) -> str:
        return "Test a fixed share of the population, drawn at random."

    @property
    def uses_statistical_parameters(self) -> bool:
        return False

    def resolve_sample_size(self, eligible_count: int, config: SamplingConfig) -> int:
        """Override first, then ceil(N x percentage / 100)."""
        if config.sample_size_override is not None:
            return int(config.sample_size_override)

        return calculate_percentage_sample_size(
            config.population_override or eligible_count, config.sample_percentage
        )
