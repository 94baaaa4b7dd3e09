import math
from fractions import Fraction

from audit_sampling.errors import InvalidConfiguration
from audit_sampling.scripts.calc_utils import get_z_score
from audit_sampling.scripts.parameter import conservative_proportion


def calculate_sample_size(
    population_size: int,
    confidence_level: float,
    margin_of_error: float,
    expected_error_rate: float,
    conservative: bool = False,
) -> int:
    """Calculate the attribute sample size for a finite population.

    Based on Cochran's formula for estimating a population proportion, with
    finite population correction.

    Formula: n0 = (Z² x p x (1 - p)) / e²
             n  = n0 / (1 + (n0 - 1) / N)

    Where:
        - Z = z-score for the desired confidence level
        - p = expected error rate (0.5 when none is expected, or when a
          conservative estimate is requested and the rate is below 0.5)
        - e = tolerable error rate (margin of error)
        - N = population size

    Args:
        population_size: Number of eligible items (N >= 0)
        confidence_level: Confidence level (0-1)
        margin_of_error: Tolerable error rate (0-1)
        expected_error_rate: Expected error rate [0-1)
        conservative: Use the maximum-variance proportion

    Returns:
        Required sample size, rounded up and clamped to [0, N]

    Raises:
        InvalidConfiguration: If any parameter is out of range
    """
    if population_size is None or population_size < 0:
        raise InvalidConfiguration("Population size must be zero or positive")
    if margin_of_error is None or not 0 < margin_of_error < 1:
        raise InvalidConfiguration(
            f"Margin of error must be in (0, 1), got {margin_of_error}"
        )
    if expected_error_rate is None or not 0 <= expected_error_rate < 1:
        raise InvalidConfiguration(
            f"Expected error rate must be in [0, 1), got {expected_error_rate}"
        )

    z_score = get_z_score(confidence_level)

    if population_size == 0:
        return 0

    if conservative:
        p = max(expected_error_rate, conservative_proportion)
    elif expected_error_rate > 0:
        p = expected_error_rate
    else:
        p = conservative_proportion

    n0 = (z_score**2 * p * (1 - p)) / margin_of_error**2
    n = n0 / (1 + (n0 - 1) / population_size)

    if not math.isfinite(n):
        raise InvalidConfiguration(
            f"Sample size calculation resulted in invalid value: {n}"
        )

    return max(0, min(int(population_size), math.ceil(n)))


def calculate_percentage_sample_size(population_size: int, percentage: float) -> int:
    """Sample size for a fixed percentage of the population, rounded up.

    Args:
        population_size: Number of eligible items
        percentage: Share of the population to test, in (0, 100]

    Returns:
        ceil(N x percentage / 100)
    """
    if percentage is None or not 0 < percentage <= 100:
        raise InvalidConfiguration(
            f"Sample percentage must be in (0, 100], got {percentage}"
        )
    # exact decimal arithmetic: 8.8% of 375 is 33, not 33.000000000000004
    exact = Fraction(int(population_size)) * Fraction(str(percentage)) / 100
    return math.ceil(exact)
