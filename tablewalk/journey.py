"""Journey: the running tag state and path of one traversal.

The path is append-only. Each PathStep carries its own copy of the tags as
they stood right after that step's entry was applied, so later steps never
change earlier snapshots.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from tablewalk.tags import Tag, evaluate

if TYPE_CHECKING:
    from tablewalk.tables import TableEntry


class PathStep(BaseModel):
    """One recorded roll on one table."""

    model_config = {"frozen": True}

    roll: int
    table_name: str
    entry: str
    description: str
    tags: dict[str, int | float]


class Journey:
    """Accumulated tags plus the ordered path that produced them.

    Created fresh by Scenario.run() unless the caller passes one in, in
    which case the run continues from that journey's tags and path.
    """

    def __init__(
        self,
        tags: dict[str, int | float] | None = None,
        path: list[PathStep] | None = None,
    ) -> None:
        self.tags: dict[str, int | float] = dict(tags) if tags else {}
        self.path: list[PathStep] = list(path) if path else []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_tags(self) -> bool:
        return bool(self.tags)

    def has_tag(
        self,
        name: str,
        *,
        equals: float | None = None,
        less_than: float | None = None,
        greater_than: float | None = None,
    ) -> bool:
        """Check a tag's presence, or its value against one criterion.

        An absent tag is always False. With several criteria only the first
        given (equals, less_than, greater_than) is used.
        """
        value = self.tags.get(name)
        if value is None:
            return False
        if equals is not None:
            return value == equals
        if less_than is not None:
            return value < less_than
        if greater_than is not None:
            return value > greater_than
        return True

    def get_paths(
        self,
        *,
        table_name: str | None = None,
        entry: str | None = None,
        roll_equals: int | None = None,
        roll_less_than: int | None = None,
        roll_greater_than: int | None = None,
    ) -> list[PathStep]:
        """Return the path steps matching every criterion given.

        Criteria are ANDed; a later criterion never replaces an earlier one.
        roll_less_than keeps steps with roll < bound and roll_greater_than
        keeps steps with roll > bound.
        """
        criteria = (table_name, entry, roll_equals, roll_less_than, roll_greater_than)
        if all(c is None for c in criteria):
            return []

        def _matches(step: PathStep) -> bool:
            if table_name is not None and step.table_name != table_name:
                return False
            if entry is not None and step.entry != entry:
                return False
            if roll_equals is not None and step.roll != roll_equals:
                return False
            if roll_less_than is not None and not step.roll < roll_less_than:
                return False
            if roll_greater_than is not None and not step.roll > roll_greater_than:
                return False
            return True

        return [step for step in self.path if _matches(step)]

    def has_path(self, *, count: int = 0, **criteria: Any) -> bool:
        """True when more than ``count`` path steps match ``criteria``."""
        return len(self.get_paths(**criteria)) > count

    def is_activated(self, thresholds: Any) -> bool:
        """True when every threshold's tag is at or above its minimum.

        Modifiers among the thresholds are evaluated against this journey
        first. An empty threshold list is trivially satisfied.
        """
        return all(
            self.tags.get(tag.name, 0) >= tag.value
            for tag in evaluate(thresholds, self)
        )

    # ------------------------------------------------------------------
    # Mutation (engine only)
    # ------------------------------------------------------------------

    def add_tag(self, tag: Tag) -> None:
        self.tags[tag.name] = self.tags.get(tag.name, 0) + tag.value

    def accumulate(self, spec: Any) -> list[Tag]:
        """Evaluate ``spec`` against this journey and add the result."""
        applied = evaluate(spec, self)
        for tag in applied:
            self.add_tag(tag)
        return applied

    def add_path_step(self, roll: int, table_name: str, entry: TableEntry) -> PathStep:
        """Apply the entry's tags, then record the step with a tag snapshot."""
        self.accumulate(entry.tags)
        step = PathStep(
            roll=roll,
            table_name=table_name,
            entry=entry.name,
            description=entry.description,
            tags=dict(self.tags),
        )
        self.path.append(step)
        return step

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "tags": dict(self.tags),
            "path": [step.model_dump() for step in self.path],
        }

    def __repr__(self) -> str:
        return f"Journey(steps={len(self.path)}, tags={self.tags!r})"
