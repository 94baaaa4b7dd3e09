"""Audit Sampling Scripts Package.

Contains calculation and selection functions for the sampling engine.
"""

from .calc_utils import (
    get_z_score,
)
from .demo_population import generate_demo_population
from .filters import apply_exclusions, filter_matches
from .precision import calculate_achieved_moe, calculate_precision_curve
from .rng import Mulberry32, NumpyRandomSource, RandomSource, rng_factory
from .sample_size import calculate_percentage_sample_size, calculate_sample_size
from .selection import select_random, select_systematic
from .stratified import (
    allocate_samples_proportional,
    apply_minimum_coverage,
    calculate_allocation_summary,
    group_positions,
)

__all__ = [
    # Calculations
    "get_z_score",
    "calculate_sample_size",
    "calculate_percentage_sample_size",
    "calculate_achieved_moe",
    "calculate_precision_curve",
    # Stratification
    "apply_exclusions",
    "filter_matches",
    "group_positions",
    "allocate_samples_proportional",
    "apply_minimum_coverage",
    "calculate_allocation_summary",
    # Selection
    "RandomSource",
    "Mulberry32",
    "NumpyRandomSource",
    "rng_factory",
    "select_random",
    "select_systematic",
    # Demo data
    "generate_demo_population",
]
