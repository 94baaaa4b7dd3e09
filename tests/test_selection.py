from audit_sampling.scripts.rng import Mulberry32, RandomSource
from audit_sampling.scripts.selection import select_random, select_systematic


class CountingSource(RandomSource):
    """Wraps a source and counts draws."""

    def __init__(self, inner):
        self.inner = inner
        self.draws = 0

    def random(self):
        self.draws += 1
        return self.inner.random()


class FixedSource(RandomSource):
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def test_random_selection_is_sorted_subset():
    positions = list(range(100, 200))
    chosen = select_random(positions, 15, Mulberry32(3))

    assert len(chosen) == 15
    assert len(set(chosen)) == 15
    assert set(chosen) <= set(positions)
    assert chosen == sorted(chosen)


def test_random_selection_consumes_one_draw_per_item():
    source = CountingSource(Mulberry32(3))
    select_random(list(range(50)), 12, source)
    assert source.draws == 12


def test_random_selection_is_reproducible():
    positions = list(range(1000))
    assert select_random(positions, 40, Mulberry32(9)) == select_random(
        positions, 40, Mulberry32(9)
    )


def test_random_selection_takes_everything_when_asked_for_more():
    assert select_random([4, 2, 9], 10, Mulberry32(1)) == [2, 4, 9]
    assert select_random([1, 2], 0, Mulberry32(1)) == []


def test_systematic_fixed_start():
    source = CountingSource(Mulberry32(5))
    chosen = select_systematic(list(range(10)), 3, source, random_start=False)

    assert chosen == [0, 3, 6]
    assert source.draws == 0


def test_systematic_random_start_uses_one_draw():
    chosen = select_systematic(list(range(10)), 3, FixedSource(0.99))
    assert chosen == [2, 5, 8]


def test_systematic_truncates_instead_of_wrapping():
    positions = list(range(10))
    for value in (0.0, 0.5, 0.99):
        chosen = select_systematic(positions, 4, FixedSource(value))
        assert len(chosen) == 4
        assert chosen == sorted(chosen)
        assert all(c < 10 for c in chosen)


def test_systematic_maps_to_stratum_positions():
    positions = [11, 12, 13, 14, 15, 16]
    assert select_systematic(positions, 2, FixedSource(0.0)) == [11, 14]


def test_systematic_takes_everything_when_asked_for_more():
    assert select_systematic([1, 2, 3], 5, Mulberry32(1)) == [1, 2, 3]
    assert select_systematic([], 5, Mulberry32(1)) == []
