import math
from typing import Optional

import numpy as np
import pandas as pd

from audit_sampling.scripts.calc_utils import get_z_score
from audit_sampling.scripts.parameter import conservative_proportion


def _proportion(expected_error_rate: float) -> float:
    return expected_error_rate if expected_error_rate > 0 else conservative_proportion


def calculate_achieved_moe(
    sample_size: int,
    expected_error_rate: float,
    confidence_level: float,
    population_size: Optional[int] = None,
) -> float:
    """Calculate the margin of error achieved by a given sample size.

    MOE = Z * sqrt(p * (1 - p) / n) * sqrt((N - n) / (N - 1))

    The finite population factor is applied when N is known and larger than n.

    Args:
        sample_size: Number of sampled items
        expected_error_rate: Expected error rate [0-1)
        confidence_level: Confidence level (0-1)
        population_size: Population size for the correction (optional)

    Returns:
        Margin of error as decimal (0-1)
    """
    if sample_size <= 0:
        return 1.0

    z_score = get_z_score(confidence_level)
    p = _proportion(expected_error_rate)
    moe = z_score * math.sqrt(p * (1 - p) / sample_size)

    if population_size is not None and population_size > 1:
        if sample_size >= population_size:
            return 0.0
        moe *= math.sqrt((population_size - sample_size) / (population_size - 1))

    return moe


def calculate_precision_curve(
    expected_error_rate: float,
    confidence_level: float,
    population_size: Optional[int] = None,
    min_sample_size: int = 10,
    max_sample_size: int = 500,
    num_points: int = 50,
) -> pd.DataFrame:
    """Calculate precision curve showing MOE vs sample size relationship.

    Used for live preview while parameters change; the margin of error
    decreases as the sample size grows.

    Args:
        expected_error_rate: Expected error rate [0-1)
        confidence_level: Confidence level (0-1)
        population_size: Population size for finite correction (optional)
        min_sample_size: Minimum sample size for curve
        max_sample_size: Maximum sample size for curve
        num_points: Number of points to calculate in curve

    Returns:
        DataFrame with columns: sample_size, moe_decimal, moe_percent
    """
    if population_size is not None:
        max_sample_size = min(max_sample_size, population_size)
        min_sample_size = min(min_sample_size, max_sample_size)

    sample_sizes = np.unique(
        np.linspace(min_sample_size, max_sample_size, num_points).astype(int)
    )

    moe_values = [
        calculate_achieved_moe(
            sample_size=int(n),
            expected_error_rate=expected_error_rate,
            confidence_level=confidence_level,
            population_size=population_size,
        )
        for n in sample_sizes
    ]

    return pd.DataFrame(
        {
            "sample_size": sample_sizes,
            "moe_decimal": moe_values,
            "moe_percent": [moe * 100 for moe in moe_values],
        }
    )
