"""Property-based tests for outcome sampling and traversal.

Properties tested:
1. Sampling only ever returns a positive-weight candidate
2. Every roll on a gap-free table finds an entry
3. A run over an acyclic chain always ends, one step per table at most
4. Final tags equal the sum of the tags of every visited entry
5. A met threshold always beats an unconditional outcome
"""

from __future__ import annotations

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from tablewalk.journey import Journey
from tablewalk.outcomes import Event, Outcome
from tablewalk.rng import SeededRNG
from tablewalk.scenario import Scenario
from tablewalk.tables import Table, TableEntry, TableRegistry


class FixedRNG:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value

    def random_int(self, min: int, max: int) -> int:
        return min


weights = st.lists(
    st.one_of(st.just(0), st.floats(min_value=0.001, max_value=100, allow_nan=False)),
    min_size=1,
    max_size=8,
)


@given(weights=weights, r=st.floats(min_value=0, max_value=0.999999, allow_nan=False))
@settings(max_examples=300, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_sample_returns_positive_weight_candidate(weights: list[float], r: float) -> None:
    outcomes = [Outcome(w, f"T{i}") for i, w in enumerate(weights)]
    picked = Scenario("p", FixedRNG(r), registry=TableRegistry()).sample(outcomes)
    if sum(weights) == 0:
        assert picked is None
    else:
        assert picked in outcomes
        assert picked.likelihood > 0


@given(widths=st.lists(st.integers(min_value=1, max_value=20), min_size=1, max_size=10), data=st.data())
@settings(max_examples=200, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_gap_free_table_covers_every_roll(widths: list[int], data: st.DataObject) -> None:
    entries, start = [], 1
    for i, width in enumerate(widths):
        entries.append(TableEntry(start, start + width - 1, f"e{i}"))
        start += width
    table = Table("T", entries, registry=TableRegistry())
    roll = data.draw(st.integers(min_value=1, max_value=table.max_value()))
    entry = table.get_entry(roll)
    assert entry is not None
    assert entry.start <= roll <= entry.end


@given(
    tag_values=st.lists(st.integers(min_value=-5, max_value=5), min_size=1, max_size=12),
    seed=st.integers(min_value=0, max_value=2**32 - 1),
)
@settings(max_examples=100, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_chain_terminates_and_sums_tags(tag_values: list[int], seed: int) -> None:
    registry = TableRegistry()
    for i, value in enumerate(tag_values):
        Table(f"T{i}", [
            TableEntry(1, 50, "a", tags={"n": value}),
            TableEntry(51, 100, "b", tags={"n": value}),
        ], registry=registry)

    scenario = Scenario("chain", SeededRNG(seed), registry=registry)
    for i in range(len(tag_values) - 1):
        scenario.add(f"T{i}", "a", {f"T{i + 1}": 1})
        # gated on a tag nobody sets, so "b" ends the run
        scenario.add(f"T{i}", "b", [Outcome(1, f"T{i + 1}", {"never": 1})])
    if len(tag_values) == 1:
        scenario.add("T0", "unused", {"T0": 1})

    journey = scenario.run(Journey())

    assert 1 <= len(journey.path) <= len(tag_values)
    assert [s.table_name for s in journey.path] == [f"T{i}" for i in range(len(journey.path))]
    assert journey.tags.get("n", 0) == sum(tag_values[: len(journey.path)])


@given(
    have=st.integers(min_value=0, max_value=10),
    need=st.integers(min_value=1, max_value=10),
    r=st.floats(min_value=0, max_value=0.999999, allow_nan=False),
)
@settings(max_examples=200, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_met_threshold_beats_unconditional(have: int, need: int, r: float) -> None:
    event = Event("T", "E", [Outcome(1, "Gated", {"power": need}), Outcome(100, "Open")])
    scenario = Scenario("p", FixedRNG(r), registry=TableRegistry())
    picked = scenario.select_outcome(event, Journey(tags={"power": have}), randomly=True)
    assert picked.table_name == ("Gated" if have >= need else "Open")
