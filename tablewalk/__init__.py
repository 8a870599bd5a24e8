"""tablewalk: deterministic procedural generation over weighted random tables.

Build tables of ranged entries, connect their entries to further tables
with weighted, tag-gated outcomes, and roll a seeded journey through them:

    from tablewalk import Outcome, Scenario, SeededRNG, Table, TableEntry

    Table("Weather", [TableEntry(1, 50, "Clear"), TableEntry(51, 100, "Storm", tags={"danger": 1})])
    Table("Road", [TableEntry(1, 100, "Onward")])
    scenario = Scenario("Trip", SeededRNG("beep1"))
    scenario.add("Weather", ["Clear", "Storm"], {"Road": 1})
    journey = scenario.run()
"""

# Re-export the public API so `from tablewalk import Scenario` works.

from .config import DEFAULT_MAX_STEPS, EngineConfig, load_config  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    DuplicateTableError,
    NoEntryForRollError,
    StepLimitExceeded,
    TableNotFoundError,
    TablewalkError,
)
from .journey import Journey, PathStep  # noqa: F401
from .markdown import Document, MarkdownFormatError, load_markdown, load_markdown_file  # noqa: F401
from .outcomes import Event, Outcome  # noqa: F401
from .rng import RandomSource, SeededRNG, hash_seed  # noqa: F401
from .scenario import Scenario  # noqa: F401
from .tables import Table, TableEntry, TableRegistry, default_registry  # noqa: F401
from .tags import Computed, Tag, evaluate, normalize  # noqa: F401
