"""Systematic sampling strategy implementation.

Systematic sampling picks every k-th item after a random start. It spreads
the sample evenly through the population order, which is useful when the
population is sorted by date or amount.
"""

import logging
from typing import List, Sequence

from audit_sampling.sampling.base import SamplingStrategy
from audit_sampling.sampling.types import SamplingConfig, SamplingMethod
from audit_sampling.scripts.rng import RandomSource
from audit_sampling.scripts.selection import select_systematic

logger = logging.getLogger("audit_sampling.sampling.systematic")


class SystematicSamplingStrategy(SamplingStrategy):
    """Strategy for systematic sampling.

    Systematic sampling is ideal when:
    - The population has a meaningful order (e.g., onboarding date)
    - The sample should cover the whole period evenly
    """

    @property
    def method(self) -> SamplingMethod:
        return SamplingMethod.SYSTEMATIC

    @property
    def display_name(self) -> str:
        return "Systematic Sampling"

    @property
    def description(self) -> str:
        return (
            "Select every k-th item after a random start within each stratum. "
            "Provides even coverage across the population order."
        )

    def select(
        self,
        positions: Sequence[int],
        size: int,
        rng: RandomSource,
        config: SamplingConfig,
    ) -> List[int]:
        """Select every k-th position; never wraps past the stratum end."""
        chosen = select_systematic(
            positions, size, rng, random_start=config.systematic_random_start
        )
        if len(chosen) < size:
            logger.warning(
                f"Systematic selection yielded {len(chosen)} of {size} requested items"
            )
        return chosen
