"""Markdown table documents → tables and scenarios.

Document format:

    # GeneratorTone: flavour of the world
    |Roll|Outcome|Tags|Requires|Description|
    |-|-|-|-|-|
    |1-5|No Magic||||
    |6-25|Low Fantasy|magic:1, lowmagic:1|||

    ## Scenario: Generate World
    |From|Entry|Go To|Likelihood|Requires|
    |-|-|-|-|-|
    |GeneratorTone|*|LandOrSea|1||

A "# Name" heading opens a table block, "## Scenario: Name" opens a
scenario block and a blank line closes either. Header and separator rows
are skipped.

Table rows: roll is "6-25" or "5"; tags and requires are comma-separated
name:value lists; a blank description falls back to the entry name. A
row's requires thresholds are merged into every outcome leaving that
(table, entry) in every scenario once the whole document is read.

Scenario rows: entry is "*" for every entry of the from-table (which must
be defined above), or a comma-separated list of entry names.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from tablewalk.config import DEFAULT_MAX_STEPS
from tablewalk.errors import ConfigurationError
from tablewalk.outcomes import Event, Outcome
from tablewalk.scenario import Scenario
from tablewalk.tables import Table, TableEntry, TableRegistry
from tablewalk.tags import Tag

logger = logging.getLogger(__name__)

_TABLE_HEADER = ["roll", "outcome", "tags", "requires", "description"]
_SCENARIO_HEADER = ["from", "entry", "go to", "likelihood", "requires"]


class MarkdownFormatError(ConfigurationError):
    """Raised when a line of a markdown document cannot be parsed."""

    def __init__(self, line_no: int, message: str) -> None:
        super().__init__(f"line {line_no}: {message}")
        self.line_no = line_no


def parse_pairs(text: str) -> list[Tag]:
    """Parse "a:1, b:2.5" into tags. Blank input gives an empty list."""
    tags: list[Tag] = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"expected name:value, got {item!r}")
        tags.append(Tag(name.strip(), _number(value.strip())))
    return tags


def _number(text: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"{text!r} is not a number") from None


class EntryRow(BaseModel):
    """|roll|outcome|tags|requires|description|"""

    roll: tuple[int, int]
    name: str
    tags: list[Tag]
    requires: list[Tag]
    description: str

    @field_validator("roll", mode="before")
    @classmethod
    def parse_roll(cls, v: object) -> tuple[int, int]:
        if not isinstance(v, str):
            return v  # type: ignore[return-value]
        start, _, end = v.strip().partition("-")
        try:
            low = int(start)
            high = int(end) if end.strip() else low
        except ValueError:
            raise ValueError(f"roll must look like '5' or '6-25', got {v!r}") from None
        return (low, high)

    @field_validator("tags", "requires", mode="before")
    @classmethod
    def parse_tag_list(cls, v: object) -> list[Tag]:
        if isinstance(v, str):
            return parse_pairs(v)
        return v  # type: ignore[return-value]

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("entry name must not be blank")
        return v.strip()


class TransitionRow(BaseModel):
    """|from|entry|go to|likelihood|requires|"""

    source: str
    entries: str
    target: str
    likelihood: float = Field(ge=0, allow_inf_nan=False)
    requires: list[Tag]

    @field_validator("requires", mode="before")
    @classmethod
    def parse_tag_list(cls, v: object) -> list[Tag]:
        if isinstance(v, str):
            return parse_pairs(v)
        return v  # type: ignore[return-value]

    @model_validator(mode="after")
    def names_present(self) -> TransitionRow:
        if not self.source or not self.target or not self.entries:
            raise ValueError("from, entry and go to are required")
        return self


@dataclass
class Document:
    """Everything defined by one markdown document."""

    registry: TableRegistry
    tables: dict[str, Table] = field(default_factory=dict)
    scenarios: dict[str, Scenario] = field(default_factory=dict)

    def scenario(self, name: str | None = None) -> Scenario:
        """The named scenario, or the first one when ``name`` is None."""
        if name is None:
            if not self.scenarios:
                raise KeyError("Document defines no scenarios")
            return next(iter(self.scenarios.values()))
        try:
            return self.scenarios[name]
        except KeyError:
            known = ", ".join(repr(n) for n in self.scenarios) or "none"
            raise KeyError(f"Unknown scenario {name!r} (known: {known})") from None


def _cells(line: str) -> list[str]:
    """Split a pipe row into stripped cells, keeping empty ones."""
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [c.strip() for c in stripped.split("|")]


def _is_header(cells: list[str]) -> bool:
    if all(c and set(c) <= set("-: ") for c in cells):
        return True
    lowered = [c.lower() for c in cells]
    return lowered in (_TABLE_HEADER, _SCENARIO_HEADER)


def load_markdown(
    text: str,
    *,
    registry: TableRegistry | None = None,
    max_steps: int | None = DEFAULT_MAX_STEPS,
) -> Document:
    """Parse ``text`` into tables (registered in ``registry``) and scenarios.

    A fresh TableRegistry is used when none is given, so documents never
    collide with each other or with the default registry.
    """
    doc = Document(registry=registry if registry is not None else TableRegistry())
    requirements: list[tuple[str, str, list[Tag]]] = []
    current_table: Table | None = None
    current_scenario: Scenario | None = None

    for line_no, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            current_table = None
            current_scenario = None
            continue

        if stripped.startswith("## Scenario:"):
            name = stripped[len("## Scenario:"):].strip()
            if not name:
                raise MarkdownFormatError(line_no, "scenario heading without a name")
            current_table = None
            current_scenario = doc.scenarios.get(name)
            if current_scenario is None:
                current_scenario = Scenario(name, registry=doc.registry, max_steps=max_steps)
                doc.scenarios[name] = current_scenario
            continue

        if stripped.startswith("# "):
            name = stripped[2:].split(":", 1)[0].strip()
            if not name:
                raise MarkdownFormatError(line_no, "table heading without a name")
            current_scenario = None
            current_table = doc.tables.get(name)
            if current_table is None:
                current_table = Table(name, registry=doc.registry)
                doc.tables[name] = current_table
            continue

        if not stripped.startswith("|"):
            continue

        cells = _cells(stripped)
        if _is_header(cells):
            continue

        if current_table is not None:
            _add_entry_row(current_table, cells, line_no, requirements)
        elif current_scenario is not None:
            _add_transition_row(current_scenario, doc, cells, line_no)
        else:
            logger.debug("line %d: row outside of any block, skipped", line_no)

    _apply_requirements(doc, requirements)
    logger.debug(
        "loaded %d table(s) and %d scenario(s)", len(doc.tables), len(doc.scenarios),
    )
    return doc


def _add_entry_row(
    table: Table,
    cells: list[str],
    line_no: int,
    requirements: list[tuple[str, str, list[Tag]]],
) -> None:
    if len(cells) != 5:
        raise MarkdownFormatError(line_no, f"expected 5 table columns, got {len(cells)}")
    roll, name, tags, requires, description = cells
    try:
        row = EntryRow(roll=roll, name=name, tags=tags, requires=requires, description=description)
    except ValidationError as e:
        raise MarkdownFormatError(line_no, str(e)) from e

    start, end = row.roll
    table.add_entry(TableEntry(start, end, row.name, row.description or row.name, row.tags))
    if row.requires:
        requirements.append((table.name, row.name, row.requires))


def _add_transition_row(scenario: Scenario, doc: Document, cells: list[str], line_no: int) -> None:
    if len(cells) != 5:
        raise MarkdownFormatError(line_no, f"expected 5 scenario columns, got {len(cells)}")
    source, entries, target, likelihood, requires = cells
    try:
        row = TransitionRow(
            source=source, entries=entries, target=target,
            likelihood=likelihood, requires=requires,
        )
    except ValidationError as e:
        raise MarkdownFormatError(line_no, str(e)) from e

    if row.entries == "*":
        table = doc.tables.get(row.source)
        if table is None:
            raise MarkdownFormatError(line_no, f'"*" used before table "{row.source}" is defined')
        names = table.keys()
    else:
        names = [n.strip() for n in row.entries.split(",") if n.strip()]

    for name in names:
        scenario.register(Event(row.source, name, [Outcome(row.likelihood, row.target, row.requires)]))


def _apply_requirements(doc: Document, requirements: list[tuple[str, str, list[Tag]]]) -> None:
    for scenario in doc.scenarios.values():
        for table_name, entry_name, thresholds in requirements:
            event = scenario.get_event(table_name, entry_name)
            if event is None:
                continue
            for outcome in event.outcomes:
                outcome.thresholds.extend(thresholds)


def load_markdown_file(
    path: Path,
    *,
    registry: TableRegistry | None = None,
    max_steps: int | None = DEFAULT_MAX_STEPS,
) -> Document:
    return load_markdown(path.read_text(encoding="utf-8"), registry=registry, max_steps=max_steps)
