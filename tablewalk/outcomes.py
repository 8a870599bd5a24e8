"""Outcomes and events: the edges of the table graph.

An Event is keyed by (table name, entry name) and lists the Outcomes that
may follow landing on that entry. Each Outcome points at the next table
to roll on, carries a relative weight, and optionally a list of tag
thresholds that must all be met for the outcome to be eligible.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any

from tablewalk.errors import ConfigurationError
from tablewalk.tags import TagPart, normalize

logger = logging.getLogger(__name__)


class Outcome:
    """A weighted, optionally gated transition to another table.

    Args:
        likelihood: Non-negative relative weight among sibling outcomes.
                    Weights do not need to sum to 1.
        table_name: Table to roll on when this outcome is chosen.
        thresholds: Minimum tag values, in any form tablewalk.tags.normalize()
                    accepts. Empty means the outcome is unconditional.
    """

    def __init__(self, likelihood: float, table_name: str, thresholds: Any = ()) -> None:
        if isinstance(likelihood, bool) or not isinstance(likelihood, Real):
            raise ConfigurationError(
                f"Outcome likelihood for {table_name!r} must be a number, got {likelihood!r}"
            )
        if not math.isfinite(likelihood) or likelihood < 0:
            raise ConfigurationError(
                f"Outcome likelihood for {table_name!r} must be finite and not negative, got {likelihood!r}"
            )
        self.likelihood = likelihood
        self.table_name = table_name
        self.thresholds: list[TagPart] = list(normalize(thresholds))

    @property
    def has_thresholds(self) -> bool:
        return len(self.thresholds) > 0

    def copy(self) -> Outcome:
        return Outcome(self.likelihood, self.table_name, list(self.thresholds))

    def __repr__(self) -> str:
        gate = f", thresholds={self.thresholds!r}" if self.thresholds else ""
        return f"Outcome({self.likelihood!r}, {self.table_name!r}{gate})"


class Event:
    """The outcomes available after rolling ``entry_name`` on ``table_name``."""

    def __init__(self, table_name: str, entry_name: str, outcomes: list[Outcome] | None = None) -> None:
        self.table_name = table_name
        self.entry_name = entry_name
        self.outcomes: list[Outcome] = list(outcomes) if outcomes else []
        for outcome in self.outcomes:
            if not isinstance(outcome, Outcome):
                raise ConfigurationError(
                    f"Event {table_name}/{entry_name} got {outcome!r}, expected an Outcome"
                )

    @property
    def key(self) -> tuple[str, str]:
        return (self.table_name, self.entry_name)

    def merge(self, other: Event, add_if_missing: bool = True) -> None:
        """Fold ``other``'s outcomes into this event.

        An outcome with the same target table and likelihood as an existing
        one contributes its thresholds to that outcome; any other outcome is
        appended (unless ``add_if_missing`` is False).
        """
        for outcome in other.outcomes:
            existing = next(
                (
                    o for o in self.outcomes
                    if o.table_name == outcome.table_name and o.likelihood == outcome.likelihood
                ),
                None,
            )
            if existing is not None:
                existing.thresholds.extend(outcome.thresholds)
                logger.debug(
                    "merged %d threshold(s) into %s/%s -> %s",
                    len(outcome.thresholds), self.table_name, self.entry_name, outcome.table_name,
                )
            elif add_if_missing:
                self.outcomes.append(outcome)

    def __repr__(self) -> str:
        return f"Event({self.table_name!r}, {self.entry_name!r}, outcomes={self.outcomes!r})"


def outcomes_from(raw: list[Outcome] | dict[str, float]) -> list[Outcome]:
    """Accept a list of Outcomes or the ``{target_table: likelihood}`` shorthand."""
    if isinstance(raw, dict):
        return [Outcome(likelihood, table_name) for table_name, likelihood in raw.items()]
    return list(raw)

