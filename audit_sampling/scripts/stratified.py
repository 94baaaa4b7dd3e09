from typing import Any, Callable, Dict, Hashable, List, Mapping, Sequence

import pandas as pd


def group_positions(
    rows: Sequence[Mapping[str, Any]],
    positions: Sequence[int],
    key_func: Callable[[Mapping[str, Any]], Hashable],
) -> Dict[Hashable, List[int]]:
    """Partition row positions into strata.

    Strata appear in the order their first row appears; positions inside a
    stratum keep population order.

    Args:
        rows: Population rows
        positions: Eligible row positions, in population order
        key_func: Maps a row to its stratum key

    Returns:
        Ordered dictionary of stratum key to row positions
    """
    groups: Dict[Hashable, List[int]] = {}
    for position in positions:
        groups.setdefault(key_func(rows[position]), []).append(position)
    return groups


def allocate_samples_proportional(
    population_counts: Sequence[int], total_samples: int
) -> List[int]:
    """Allocate samples proportionally using the largest-remainder method.

    Formula: n_h = floor(n x N_h / N), then the leftover units go one at a
    time to the strata with the largest fractional remainder (ties go to the
    stratum that appears first).

    Integer arithmetic keeps the result exact: the allocation sums to
    min(total_samples, N) and no stratum exceeds its population.

    Args:
        population_counts: Population count per stratum, in stratum order
        total_samples: Desired total sample size

    Returns:
        Sample count per stratum, in stratum order
    """
    total_population = sum(population_counts)
    if total_population <= 0 or total_samples <= 0:
        return [0 for _ in population_counts]

    if total_samples >= total_population:
        return list(population_counts)

    base = []
    remainders = []
    for count in population_counts:
        quotient, remainder = divmod(total_samples * count, total_population)
        base.append(quotient)
        remainders.append(remainder)

    leftover = total_samples - sum(base)
    order = sorted(range(len(base)), key=lambda i: (-remainders[i], i))
    for index in order[:leftover]:
        base[index] += 1

    return [min(n, count) for n, count in zip(base, population_counts)]


def apply_minimum_coverage(
    sample_counts: Sequence[int], population_counts: Sequence[int], minimum: int = 1
) -> List[int]:
    """Raise every non-empty stratum to at least ``minimum`` samples.

    Strata are never raised above their population.
    """
    return [
        max(n, min(minimum, count)) if count > 0 else n
        for n, count in zip(sample_counts, population_counts)
    ]


def calculate_allocation_summary(
    labels: Sequence[str],
    population_counts: Sequence[int],
    sample_counts: Sequence[int],
) -> pd.DataFrame:
    """Create a summary DataFrame of the sample allocation results.

    Args:
        labels: Stratum labels
        population_counts: Population count per stratum
        sample_counts: Sample count per stratum

    Returns:
        DataFrame with allocation summary
    """
    results_data = []
    total_population = sum(population_counts)
    total_samples = sum(sample_counts)

    for label, population, samples in zip(labels, population_counts, sample_counts):
        population_percent = (
            population / total_population * 100 if total_population > 0 else 0
        )
        sample_percent = samples / total_samples * 100 if total_samples > 0 else 0
        sampling_rate = samples / population * 100 if population > 0 else 0

        results_data.append(
            {
                "Stratum": label,
                "Population": population,
                "Population %": f"{population_percent:.1f}%",
                "Samples": samples,
                "Sample %": f"{sample_percent:.1f}%",
                "Sampling Rate": f"{sampling_rate:.2f}%",
            }
        )

    return pd.DataFrame(results_data)
