"""Base class for sampling strategies.

Defines the interface that all sampling strategies must implement.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence

from audit_sampling.sampling.types import SamplingConfig, SamplingMethod
from audit_sampling.scripts.rng import RandomSource
from audit_sampling.scripts.sample_size import calculate_sample_size

logger = logging.getLogger("audit_sampling.sampling")


class SamplingStrategy(ABC):
    """Abstract base class for sampling strategies.

    Each sampling method (statistical, random, systematic, percentage)
    implements this interface. A strategy decides how large the sample should
    be and how units are picked inside one stratum; stratification and
    allocation are shared by all methods.
    """

    @property
    @abstractmethod
    def method(self) -> SamplingMethod:
        """Return the sampling method this strategy handles."""
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name for this sampling method."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Description of when to use this sampling method."""
        pass

    @property
    def uses_statistical_parameters(self) -> bool:
        """Whether confidence, margin and expected error drive the sample size."""
        return True

    def validate_inputs(self, config: SamplingConfig, columns: Iterable[str]) -> List[str]:
        """Validate a config for this sampling method.

        Args:
            config: Sampling configuration to validate
            columns: Population column names

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = config.validate_against(columns)
        if config.method != self.method:
            errors.append(
                f"Config method '{config.method.value}' does not match "
                f"strategy '{self.method.value}'"
            )
        return errors

    def resolve_sample_size(self, eligible_count: int, config: SamplingConfig) -> int:
        """Determine the desired total sample size.

        An explicit sample size override takes precedence; otherwise the
        statistical formula runs on the eligible count (or on the population
        override when one is set).

        Args:
            eligible_count: Rows left after exclusions
            config: Validated sampling configuration

        Returns:
            Desired sample size before population caps
        """
        if config.sample_size_override is not None:
            return int(config.sample_size_override)

        return calculate_sample_size(
            population_size=config.population_override or eligible_count,
            confidence_level=config.confidence_level,
            margin_of_error=config.margin_of_error,
            expected_error_rate=config.expected_error_rate,
            conservative=config.conservative,
        )

    @abstractmethod
    def select(
        self,
        positions: Sequence[int],
        size: int,
        rng: RandomSource,
        config: SamplingConfig,
    ) -> List[int]:
        """Select ``size`` positions from one stratum.

        Args:
            positions: Stratum row positions, in population order
            size: Allocated sample count for the stratum
            rng: Shared random stream for the whole draw
            config: Sampling configuration

        Returns:
            Selected positions, in population order
        """
        pass
