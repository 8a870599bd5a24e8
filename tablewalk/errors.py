"""Exceptions raised by the engine.

Every fatal condition is a TablewalkError subclass so callers of
Scenario.run() can catch the whole family in one place:

    ConfigurationError   bad definitions (duplicate table, malformed
                           thresholds, negative likelihood, bad config)
    TableNotFoundError   a table was referenced by name but never defined
    NoEntryForRollError  a roll fell outside every entry range
    StepLimitExceeded    a run hit the configured max_steps cap

"No event for the rolled entry" and "no outcome could be selected" are
not errors: they are how a journey ends.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tablewalk.journey import Journey


class TablewalkError(RuntimeError):
    """Base class for every error raised by tablewalk."""


class ConfigurationError(TablewalkError, ValueError):
    """Raised when tables, outcomes, events or settings are malformed."""


class DuplicateTableError(ConfigurationError):
    """Raised when a table name is registered twice in the same registry."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f'Table with name "{table_name}" is already registered.')
        self.table_name = table_name


class TableNotFoundError(TablewalkError, LookupError):
    """Raised when a table is requested by name and is not registered."""

    def __init__(self, table_name: str) -> None:
        super().__init__(f'Table "{table_name}" not found.')
        self.table_name = table_name


class NoEntryForRollError(TablewalkError):
    """Raised when a roll does not land inside any entry of a table.

    This means the table's ranges do not cover its own roll space, which is
    a content bug rather than a runtime condition.
    """

    def __init__(self, table_name: str, roll: int) -> None:
        super().__init__(f'No entry found for roll {roll} in table "{table_name}".')
        self.table_name = table_name
        self.roll = roll


class StepLimitExceeded(TablewalkError):
    """Raised when a run would append more path steps than max_steps allows.

    The partial journey is attached so callers can inspect the loop.
    """

    def __init__(self, max_steps: int, journey: Journey) -> None:
        last = journey.path[-1] if journey.path else None
        where = f' (last step "{last.table_name}/{last.entry}")' if last else ""
        super().__init__(f"Scenario exceeded {max_steps} steps{where}.")
        self.max_steps = max_steps
        self.journey = journey
