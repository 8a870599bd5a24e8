"""Scenario engine: rolls through the table graph and builds a Journey.

Run flow:
  1. Roll on the start event's table: random_int(0, max_value) + 1, take
     the first entry covering the roll, fold its tags into the journey and
     append a path step.
  2. Look up the event for (table, rolled entry). None → the journey ends.
  3. Resolve one outcome of that event (see select_outcome). None → the
     journey ends.
  4. Roll once on the outcome's target table and append that step. This
     roll is the one the next iteration matches against in step 2; it is
     never rolled again.

Tables may route back to tables already visited ("loop until a tag
threshold is crossed"), so a run only stops at a dead end. max_steps caps
the path length as a guard against graphs that have none.

Outcome resolution, in priority order:
  1. If any outcome carries thresholds, the candidates are the thresholded
     outcomes whose every threshold is met. If none qualify, the candidates
     fall back to the unconditional outcomes.
     Without any thresholded outcome every outcome is a candidate.
  2. Weighted sampling over the candidates: r = random() * total weight,
     pick the first outcome whose cumulative weight is >= r. Zero-weight
     outcomes are never picked.
  3. If sampling picks nothing and a target table name was asked for, the
     first outcome (of all the event's outcomes) aimed at that table.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from tablewalk.config import DEFAULT_MAX_STEPS
from tablewalk.errors import ConfigurationError, NoEntryForRollError, StepLimitExceeded
from tablewalk.journey import Journey, PathStep
from tablewalk.outcomes import Event, Outcome, outcomes_from
from tablewalk.rng import RandomSource, SeededRNG
from tablewalk.tables import Table, TableRegistry, default_registry

logger = logging.getLogger(__name__)


class Scenario:
    """A set of events over a registry of tables, plus the RNG that drives them.

    Args:
        name:      Label used in logs and error messages.
        rng:       Any RandomSource. Defaults to an unseeded SeededRNG.
        registry:  Where target tables are looked up. Defaults to the
                   module-level default registry.
        max_steps: Largest number of path steps one run may append, or
                   None for no cap.
    """

    def __init__(
        self,
        name: str,
        rng: RandomSource | None = None,
        *,
        registry: TableRegistry | None = None,
        max_steps: int | None = DEFAULT_MAX_STEPS,
    ) -> None:
        if max_steps is not None and max_steps < 1:
            raise ConfigurationError(f"max_steps must be at least 1, got {max_steps}")
        self.name = name
        self.rng: RandomSource = rng if rng is not None else SeededRNG()
        self.registry = registry if registry is not None else default_registry
        self.max_steps = max_steps
        self._events: dict[tuple[str, str], Event] = {}
        self.journey: Journey | None = None

    # ------------------------------------------------------------------
    # Event registration
    # ------------------------------------------------------------------

    @property
    def events(self) -> list[Event]:
        return list(self._events.values())

    def get_event(self, table_name: str, entry_name: str) -> Event | None:
        return self._events.get((table_name, entry_name))

    def register(self, event: Event) -> Event:
        """Add ``event``, merging it into an existing event with the same key."""
        existing = self._events.get(event.key)
        if existing is not None:
            existing.merge(event)
            return existing
        self._events[event.key] = event
        return event

    def add(
        self,
        table_name: str,
        entry_names: str | list[str],
        outcomes: list[Outcome] | dict[str, float],
    ) -> None:
        """Attach outcomes to one entry or to each of several entries.

        ``outcomes`` may be a list of Outcome objects or the shorthand
        ``{"TargetTable": likelihood}``. Each entry gets its own copies.
        """
        normalized = outcomes_from(outcomes)
        names = [entry_names] if isinstance(entry_names, str) else list(entry_names)
        for name in names:
            self.register(Event(table_name, name, [o.copy() for o in normalized]))

    # ------------------------------------------------------------------
    # Outcome resolution
    # ------------------------------------------------------------------

    def possible_outcomes(self, event: Event, journey: Journey) -> list[Outcome]:
        gated = [o for o in event.outcomes if o.has_thresholds]
        if not gated:
            return list(event.outcomes)

        qualifying = [o for o in gated if journey.is_activated(o.thresholds)]
        if qualifying:
            return qualifying
        return [o for o in event.outcomes if not o.has_thresholds]

    def sample(self, outcomes: list[Outcome]) -> Outcome | None:
        """Weighted pick: first outcome whose running total reaches r."""
        total = 0.0
        cumulative: list[tuple[Outcome, float]] = []
        for outcome in outcomes:
            total += outcome.likelihood
            cumulative.append((outcome, total))

        r = self.rng.random() * total
        for outcome, running in cumulative:
            if outcome.likelihood > 0 and r <= running:
                return outcome
        return None

    def select_outcome(
        self,
        event: Event,
        journey: Journey | None = None,
        *,
        by_table_name: str | None = None,
        randomly: bool = False,
    ) -> Outcome | None:
        """Choose the outcome that follows ``event`` for ``journey``.

        Without a journey, all outcomes are sampled by weight and thresholds
        are ignored.
        """
        if journey is None:
            logger.debug("%s: sampling all %d outcomes", event.key, len(event.outcomes))
            return self.sample(event.outcomes)

        possible = self.possible_outcomes(event, journey)
        if not possible:
            logger.debug("%s: no possible outcomes", event.key)
            return None

        outcome = None
        if randomly or journey.has_tags() or any(o.has_thresholds for o in possible):
            logger.debug("%s: sampling 1 of %d possible outcomes", event.key, len(possible))
            outcome = self.sample(possible)
            if outcome is None:
                logger.warning(
                    "Scenario %r: outcomes of %s/%s have zero total likelihood",
                    self.name, event.table_name, event.entry_name,
                )

        if outcome is None and by_table_name is not None:
            outcome = next((o for o in event.outcomes if o.table_name == by_table_name), None)
        return outcome

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def roll(self, table_name: str, journey: Journey) -> PathStep:
        """Roll once on ``table_name`` and record the step on ``journey``."""
        table: Table = self.registry.require(table_name)
        roll = self.rng.random_int(0, table.max_value()) + 1
        entry = table.get_entry(roll)
        if entry is None:
            raise NoEntryForRollError(table_name, roll)
        step = journey.add_path_step(roll, table_name, entry)
        logger.debug("rolled %d on %r -> %r", roll, table_name, entry.name)
        return step

    def walk(self, journey: Journey | None = None, start: Event | None = None) -> Iterator[PathStep]:
        """Yield each path step as it is rolled.

        The journey is mutated in place; self.journey points at it.
        """
        if not self._events:
            raise ConfigurationError(f"No events registered in scenario {self.name!r}.")
        if journey is None:
            journey = Journey()
        self.journey = journey
        event = start if start is not None else next(iter(self._events.values()))

        steps = 0
        step = self._next_step(event.table_name, journey, steps)
        steps += 1
        yield step

        while True:
            event = self.get_event(step.table_name, step.entry)
            if event is None:
                logger.debug("no event for %s/%s, journey ends", step.table_name, step.entry)
                return

            outcome = self.select_outcome(event, journey, randomly=True)
            if outcome is None:
                logger.debug("no outcome for %s/%s, journey ends", step.table_name, step.entry)
                return

            logger.debug(
                "step %d: %s/%s -> %s", steps, step.table_name, step.entry, outcome.table_name,
            )
            step = self._next_step(outcome.table_name, journey, steps)
            steps += 1
            yield step

    def _next_step(self, table_name: str, journey: Journey, steps: int) -> PathStep:
        if self.max_steps is not None and steps >= self.max_steps:
            raise StepLimitExceeded(self.max_steps, journey)
        return self.roll(table_name, journey)

    def run(self, journey: Journey | None = None, start: Event | None = None) -> Journey:
        """Traverse from ``start`` (default: first registered event) to a dead end."""
        if journey is None:
            journey = Journey()
        for _ in self.walk(journey, start):
            pass
        logger.debug("scenario %r finished after %d steps", self.name, len(journey.path))
        return journey

    def create(self, **kwargs: Any) -> list[PathStep]:
        """Run and return only the path."""
        return self.run(**kwargs).path

    def __repr__(self) -> str:
        return f"Scenario({self.name!r}, events={len(self._events)})"
