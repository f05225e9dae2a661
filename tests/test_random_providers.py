from __future__ import annotations

import threading

from adapters.formula_parser import RecursiveDescentParser
from adapters.random_provider import (
    FixedRandomProvider,
    SeededRandomProvider,
    SystemRandomProvider,
    build_random_provider,
)
from ports.random_provider import RandomProvider


def test_all_providers_satisfy_the_port():
    for provider in (SystemRandomProvider(), SeededRandomProvider(1), FixedRandomProvider()):
        assert isinstance(provider, RandomProvider)


def test_seeded_provider_repeats_sequence_for_same_seed():
    first = SeededRandomProvider(42)
    second = SeededRandomProvider(42)

    a = [first.uniform01(), first.uniform_below(5.0), first.uniform_int_below(100)]
    b = [second.uniform01(), second.uniform_below(5.0), second.uniform_int_below(100)]

    assert a == b


def test_values_stay_in_half_open_ranges():
    provider = SystemRandomProvider()
    for _ in range(200):
        assert 0.0 <= provider.uniform01() < 1.0
        assert 0.0 <= provider.uniform_below(3.5) < 3.5
        assert 0 <= provider.uniform_int_below(4) < 4


def test_non_positive_max_yields_zero():
    for provider in (SystemRandomProvider(), SeededRandomProvider(3), FixedRandomProvider(0.9)):
        assert provider.uniform_below(0.0) == 0.0
        assert provider.uniform_below(-2.0) == 0.0
        assert provider.uniform_below(float("nan")) == 0.0
        assert provider.uniform_int_below(0) == 0
        assert provider.uniform_int_below(-7) == 0


def test_fixed_provider_scales_its_value():
    provider = FixedRandomProvider(0.5)

    assert provider.uniform01() == 0.5
    assert provider.uniform_below(8.0) == 4.0
    assert provider.uniform_int_below(5) == 2


def test_build_random_provider_selects_by_seed():
    assert isinstance(build_random_provider(None), SystemRandomProvider)
    seeded = build_random_provider(7)
    assert isinstance(seeded, SeededRandomProvider)
    assert seeded.seed == 7


def test_system_provider_is_usable_from_many_threads():
    formula = RecursiveDescentParser(SystemRandomProvider()).parse("rand(10) + randf(1)").unwrap()
    results: list[float] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(100):
            value = formula.evaluate().unwrap()
            with lock:
                results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 400
    assert all(0.0 <= v < 11.0 for v in results)


def test_seeded_parser_gives_reproducible_formula_results():
    text = "let roll = rand(6) + 1; roll * random()"
    first = RecursiveDescentParser(SeededRandomProvider(11)).parse(text).unwrap()
    second = RecursiveDescentParser(SeededRandomProvider(11)).parse(text).unwrap()

    assert [first.evaluate().unwrap() for _ in range(5)] == [second.evaluate().unwrap() for _ in range(5)]
