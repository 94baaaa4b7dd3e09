from typing import List, Sequence

from audit_sampling.scripts.rng import RandomSource


def select_random(positions: Sequence[int], size: int, rng: RandomSource) -> List[int]:
    """Select positions uniformly at random without replacement.

    Partial Fisher-Yates: exactly ``size`` draws are taken from the stream,
    one per selected item. The selection is returned in population order.

    Args:
        positions: Candidate positions, in population order
        size: Number of positions to select
        rng: Shared random stream

    Returns:
        Sorted list of selected positions
    """
    n = len(positions)
    take = min(size, n)
    if take <= 0:
        return []

    pool = list(positions)
    for i in range(take):
        j = i + rng.randbelow(n - i)
        pool[i], pool[j] = pool[j], pool[i]

    return sorted(pool[:take])


def select_systematic(
    positions: Sequence[int],
    size: int,
    rng: RandomSource,
    random_start: bool = True,
) -> List[int]:
    """Select every k-th position after a random start.

    Interval k = floor(n / size); the start offset is drawn from [0, k).
    Selection stops at the end of the stratum and never wraps around, so a
    stratum may yield fewer than ``size`` positions. With k = floor(n / size)
    the full count always fits.

    Args:
        positions: Candidate positions, in population order
        size: Number of positions to select
        rng: Shared random stream
        random_start: Draw the start offset; otherwise start at 0 without
            consuming the stream

    Returns:
        Selected positions, in population order
    """
    n = len(positions)
    if size <= 0 or n == 0:
        return []
    if size >= n:
        return list(positions)

    interval = n // size
    start = rng.randbelow(interval) if random_start else 0

    return [positions[i] for i in range(start, n, interval)][:size]
