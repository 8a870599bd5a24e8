"""Tests for tablewalk.markdown: loading tables and scenarios from markdown."""

from pathlib import Path

import pytest

from tablewalk.markdown import MarkdownFormatError, load_markdown, load_markdown_file, parse_pairs
from tablewalk.rng import SeededRNG
from tablewalk.tables import TableRegistry, default_registry
from tablewalk.tags import Tag

CASTLE = Path(__file__).parent / "fixtures" / "castle.md"

SMALL = """\
# Weather
|Roll|Outcome|Tags|Requires|Description|
|-|-|-|-|-|
|1-50|Sun||||
|51-100|Rain|wet:1||It pours.|

# Road
|Roll|Outcome|Tags|Requires|Description|
|-|-|-|-|-|
|1-100|Mud|slow:1.5|||

## Scenario: Trip
|From|Entry|Go To|Likelihood|Requires|
|-|-|-|-|-|
|Weather|*|Road|1||
"""


# ── parse_pairs ────────────────────────────────────────────


def test_parse_pairs():
    assert parse_pairs("magic:1, lowmagic:2") == [Tag("magic", 1), Tag("lowmagic", 2)]


def test_parse_pairs_float_and_negative():
    assert parse_pairs("slow:1.5,hp:-2") == [Tag("slow", 1.5), Tag("hp", -2)]


def test_parse_pairs_blank():
    assert parse_pairs("") == []
    assert parse_pairs("  ,  ") == []


@pytest.mark.parametrize("bad", ["magic", ":1", "magic:lots"])
def test_parse_pairs_rejects(bad):
    with pytest.raises(ValueError):
        parse_pairs(bad)


# ── documents ──────────────────────────────────────────────


def test_load_small_document():
    doc = load_markdown(SMALL)

    assert list(doc.tables) == ["Weather", "Road"]
    weather = doc.tables["Weather"]
    assert weather.keys() == ["Sun", "Rain"]
    assert weather.max_value() == 100
    assert weather.get_entry(60).description == "It pours."
    assert weather.get_entry(10).description == "Sun"
    assert weather.get_entry(60).tags == (Tag("wet", 1),)
    assert doc.tables["Road"].entries[0].tags == (Tag("slow", 1.5),)

    trip = doc.scenario("Trip")
    assert [e.key for e in trip.events] == [("Weather", "Sun"), ("Weather", "Rain")]
    assert trip.registry is doc.registry


def test_documents_use_their_own_registry():
    first = load_markdown(SMALL)
    second = load_markdown(SMALL)
    assert first.registry is not second.registry
    assert len(default_registry) == 0


def test_explicit_registry():
    registry = TableRegistry()
    load_markdown(SMALL, registry=registry)
    assert "Weather" in registry


def test_single_roll_value():
    doc = load_markdown("# D\n|5|Five||||\n")
    entry = doc.tables["D"].entries[0]
    assert (entry.start, entry.end) == (5, 5)


def test_entry_list_in_scenario_row():
    doc = load_markdown(SMALL.replace("|Weather|*|Road|1||", "|Weather|Rain, Sun|Road|2|wet:1|"))
    event = doc.scenario("Trip").get_event("Weather", "Sun")
    assert event.outcomes[0].likelihood == 2
    assert event.outcomes[0].thresholds == [Tag("wet", 1)]


def test_table_requires_merged_into_outcomes():
    text = SMALL.replace("|51-100|Rain|wet:1||It pours.|", "|51-100|Rain|wet:1|umbrella:1||")
    trip = load_markdown(text).scenario("Trip")
    assert trip.get_event("Weather", "Rain").outcomes[0].thresholds == [Tag("umbrella", 1)]
    assert trip.get_event("Weather", "Sun").outcomes[0].thresholds == []


def test_repeated_table_heading_extends():
    doc = load_markdown("# D\n|1-2|Low||||\n\n# D\n|3-4|High||||\n")
    assert doc.tables["D"].keys() == ["Low", "High"]


def test_rows_outside_blocks_ignored():
    text = "Some prose.\n|a|b|\n\n" + SMALL
    assert list(load_markdown(text).tables) == ["Weather", "Road"]


def test_blank_line_closes_block():
    text = "# D\n|1-2|Low||||\n\n|3-4|Stray||||\n"
    assert load_markdown(text).tables["D"].keys() == ["Low"]


def test_first_scenario_is_default():
    assert load_markdown(SMALL).scenario().name == "Trip"


def test_unknown_scenario():
    with pytest.raises(KeyError, match="Trip"):
        load_markdown(SMALL).scenario("Nope")


def test_document_without_scenarios():
    with pytest.raises(KeyError):
        load_markdown("# D\n|1|x||||\n").scenario()


# ── errors ─────────────────────────────────────────────────


@pytest.mark.parametrize("row,line_no", [
    ("|one-two|x||||", 2),
    ("|1-5|   ||||", 2),
    ("|1-5|x|magic|||", 2),
    ("|1-5|x|||", 2),
])
def test_bad_table_rows(row, line_no):
    with pytest.raises(MarkdownFormatError) as exc_info:
        load_markdown(f"# D\n{row}\n")
    assert exc_info.value.line_no == line_no
    assert str(exc_info.value).startswith(f"line {line_no}:")


@pytest.mark.parametrize("row", [
    "|D|x|E|-1||",
    "|D|x|E|often||",
    "|D|x|E|nan||",
    "|D|x|E|inf||",
    "|D|x||1||",
    "|D|x|E|1|",
])
def test_bad_scenario_rows(row):
    with pytest.raises(MarkdownFormatError):
        load_markdown(f"# D\n|1|x||||\n\n## Scenario: S\n{row}\n")


def test_star_before_table_defined():
    with pytest.raises(MarkdownFormatError, match='"\\*" used before table "Later"'):
        load_markdown("## Scenario: S\n|Later|*|Other|1||\n")


def test_heading_without_name():
    with pytest.raises(MarkdownFormatError):
        load_markdown("## Scenario:\n")


# ── running a loaded document ──────────────────────────────


def test_castle_file_matches_code_built_journey():
    doc = load_markdown_file(CASTLE)
    scenario = doc.scenario("Medieval Castle Generator")
    scenario.rng = SeededRNG("beep1")

    journey = scenario.run()

    assert [(s.roll, s.table_name, s.entry) for s in journey.path] == [
        (37, "GeneratorTone", "Fantasy"),
        (55, "LandOrSea", "Inland"),
        (24, "BiomeRouter", "Route to Land Biome"),
        (46, "LandBiome", "Prairie"),
        (83, "TerrainRoughness", "Hilly"),
        (59, "LandSources", "Broad river flowing past castle walls"),
        (21, "RegionalPopulation", "Wild (3-9)"),
    ]
    assert journey.path[3].description == "Open grassland as far as the eye can see"
    assert journey.tags["pop"] == 2


def test_castle_file_second_scenario():
    doc = load_markdown_file(CASTLE, max_steps=5)
    scenario = doc.scenario("Just The Tone")
    assert scenario.max_steps == 5
    scenario.rng = SeededRNG("beep1")
    assert [s.table_name for s in scenario.create()] == ["GeneratorTone", "LandOrSea"]
