import math

from scipy import stats

from audit_sampling.errors import InvalidConfiguration
from audit_sampling.scripts.parameter import z_score_decimals


def get_z_score(confidence_level: float) -> float:
    """Calculate Z-score for given confidence level.

    Uses the two-sided inverse standard-normal CDF, rounded so that the common
    levels give the textbook values (0.90 -> 1.645, 0.95 -> 1.96,
    0.99 -> 2.576). Rounding is monotone, so a higher confidence level never
    yields a smaller z-score.

    Args:
        confidence_level: Confidence level, strictly between 0 and 1

    Returns:
        Z-score value

    Raises:
        InvalidConfiguration: If confidence_level is outside (0, 1)
    """
    if not isinstance(confidence_level, (int, float)) or math.isnan(confidence_level):
        raise InvalidConfiguration("Confidence level must be a number")
    if not 0 < confidence_level < 1:
        raise InvalidConfiguration(
            f"Confidence level must be in (0, 1), got {confidence_level}"
        )

    p_value = (1 + confidence_level) / 2.0
    return round(float(stats.norm.ppf(p_value)), z_score_decimals)
