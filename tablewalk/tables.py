"""Tables, their entries, and the registry that finds tables by name.

A table is an ordered list of entries, each owning an inclusive numeric
range. Rolling on a table means drawing 1..max_value and taking the first
entry whose range contains the roll; ranges may overlap or leave gaps.

Tables register themselves on construction. By default they go into the
module-level ``default_registry``; pass ``registry=`` to keep a set of
tables isolated (one registry per document, per test, per worker).
"""

from __future__ import annotations

import logging
from typing import Any

from tablewalk.errors import ConfigurationError, DuplicateTableError, TableNotFoundError
from tablewalk.tags import TagSpec, normalize

logger = logging.getLogger(__name__)


class TableEntry:
    """One row of a table.

    Args:
        start:       Lowest roll (inclusive) that selects this entry.
        end:         Highest roll (inclusive).
        name:        Identifier used to match scenario events.
        description: Display text. Defaults to ``name`` when omitted; an
                     explicit empty string is kept as given.
        tags:        Anything tablewalk.tags.normalize() accepts.
    """

    def __init__(
        self,
        start: int,
        end: int,
        name: str,
        description: str | None = None,
        tags: Any = (),
    ) -> None:
        self.start = start
        self.end = end
        self.name = name
        self.description = name if description is None else description
        self.tags: TagSpec = normalize(tags)

    def matches(self, value: int) -> bool:
        return self.start <= value <= self.end

    def __repr__(self) -> str:
        return f"TableEntry({self.start}-{self.end} {self.name!r})"


class Table:
    """A named, range-addressed list of entries."""

    def __init__(
        self,
        name: str,
        entries: list[TableEntry] | None = None,
        *,
        registry: TableRegistry | None = None,
    ) -> None:
        self.name = name
        self.entries: list[TableEntry] = list(entries) if entries else []
        if registry is None:
            registry = default_registry
        registry.register(self)

    def add_entry(self, entry: TableEntry) -> None:
        self.entries.append(entry)

    def max_value(self) -> int:
        """Highest ``end`` across all entries, or 0 for an empty table."""
        if not self.entries:
            return 0
        return max(entry.end for entry in self.entries)

    def get_entry(self, value: int) -> TableEntry | None:
        """First entry, in insertion order, whose range contains ``value``."""
        for entry in self.entries:
            if entry.matches(value):
                return entry
        return None

    def keys(self) -> list[str]:
        return [entry.name for entry in self.entries]

    @staticmethod
    def get_keys(table_name: str, registry: TableRegistry | None = None) -> list[str]:
        """Entry names of a registered table, for fanning one rule out to all of them."""
        if registry is None:
            registry = default_registry
        return registry.get_keys(table_name)

    def __repr__(self) -> str:
        return f"Table({self.name!r}, entries={len(self.entries)})"


class TableRegistry:
    """Name → Table lookup. A name may only be registered once."""

    def __init__(self) -> None:
        self._tables: dict[str, Table] = {}

    def register(self, table: Table) -> None:
        if not isinstance(table, Table):
            raise ConfigurationError("Only instances of Table can be registered.")
        if table.name in self._tables:
            raise DuplicateTableError(table.name)
        self._tables[table.name] = table
        logger.debug("registered table %r (%d entries)", table.name, len(table.entries))

    def get(self, name: str) -> Table | None:
        return self._tables.get(name)

    def require(self, name: str) -> Table:
        table = self._tables.get(name)
        if table is None:
            raise TableNotFoundError(name)
        return table

    def get_keys(self, name: str) -> list[str]:
        return self.require(name).keys()

    def all(self) -> list[Table]:
        return list(self._tables.values())

    def clear(self) -> None:
        """Forget every table. Table objects themselves are left untouched."""
        self._tables.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)


default_registry = TableRegistry()
