import pytest

from audit_sampling.scripts.rng import (
    Mulberry32,
    NumpyRandomSource,
    RandomSource,
    rng_factory,
)


def _stream(source, n=200):
    return [source.random() for _ in range(n)]


@pytest.mark.parametrize("cls", [Mulberry32, NumpyRandomSource])
def test_same_seed_same_stream(cls):
    assert _stream(cls(42)) == _stream(cls(42))


@pytest.mark.parametrize("cls", [Mulberry32, NumpyRandomSource])
def test_different_seeds_differ(cls):
    assert _stream(cls(1)) != _stream(cls(2))


def test_mulberry32_values_in_unit_interval():
    values = _stream(Mulberry32(12345), 5000)
    assert all(0.0 <= v < 1.0 for v in values)
    # roughly uniform
    assert 0.45 < sum(values) / len(values) < 0.55


def test_mulberry32_accepts_large_and_negative_seeds():
    assert _stream(Mulberry32(2**40 + 7), 5) == _stream(Mulberry32(7), 5)
    assert all(0.0 <= v < 1.0 for v in _stream(Mulberry32(-1), 50))


def test_randbelow_bounds():
    source = Mulberry32(7)
    draws = [source.randbelow(5) for _ in range(1000)]
    assert set(draws) == {0, 1, 2, 3, 4}

    with pytest.raises(ValueError):
        source.randbelow(0)


class _Constant(RandomSource):
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def test_randbelow_clamps_to_upper_bound():
    assert _Constant(0.9999999999999999).randbelow(3) == 2
    assert _Constant(0.0).randbelow(3) == 0


def test_rng_factory():
    assert isinstance(rng_factory(1), Mulberry32)
    assert isinstance(rng_factory(1, kind="numpy"), NumpyRandomSource)
    with pytest.raises(ValueError):
        rng_factory(1, kind="mersenne")
