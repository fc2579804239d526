"""
Story extraction - Reads epics, stories and metrics back out of generated text.

Two paths:

1. The fenced ``yaml`` story index the stories prompt asks for. This is a
   structured parse and is preferred whenever the block is present.
2. A regex scan of the Markdown itself, for documents without a usable
   index (older output, or models that ignore the instruction).

Neither path raises on malformed input; missing values fall back to
defaults.
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from .models import (
    AcceptanceCriterion,
    DEFAULT_EPICS_COUNT,
    DEFAULT_POINTS,
    DEFAULT_STORIES_COUNT,
    EdgeCase,
    EffortSize,
    Epic,
    ErrorScenario,
    HappyPathStep,
    Priority,
    StoryBreakdown,
    StoryMetrics,
    StoryTestCases,
    UserStory,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


EPIC_ID_PATTERN = re.compile(r"EPIC-\d+")
STORY_ID_PATTERN = re.compile(r"US-\d+")
STORY_POINTS_PATTERN = re.compile(r"Story Points:\**\s*(\d+)", re.IGNORECASE)

STORY_HEADING_PATTERN = re.compile(r"^###\s+(US-\d+):\s*(.+?)\s*$", re.MULTILINE)
BLOCK_END_PATTERN = re.compile(r"^#{1,3}\s", re.MULTILINE)
YAML_BLOCK_PATTERN = re.compile(r"```ya?ml[ \t]*\n(.*?)```", re.DOTALL)

STORY_INDEX_KEY = "story_index"


# =============================================================================
# Metrics
# =============================================================================

def extract_story_metrics(text: str) -> StoryMetrics:
    """
    Count epics, stories and story points in generated text.

    - epics: distinct ``EPIC-n`` ids (default 3)
    - stories: distinct ``US-n`` ids (default 10)
    - points: sum of every ``Story Points: N`` (default stories * 5)
    """
    text = text or ""

    epic_ids = set(EPIC_ID_PATTERN.findall(text))
    story_ids = set(STORY_ID_PATTERN.findall(text))
    point_values = STORY_POINTS_PATTERN.findall(text)

    epics_count = len(epic_ids) if epic_ids else DEFAULT_EPICS_COUNT
    stories_count = len(story_ids) if story_ids else DEFAULT_STORIES_COUNT
    if point_values:
        total_points = sum(int(value) for value in point_values)
    else:
        total_points = stories_count * DEFAULT_POINTS

    return StoryMetrics(
        epics_count=epics_count,
        stories_count=stories_count,
        total_points=total_points,
    )


def metrics_from_breakdown(breakdown: StoryBreakdown, text: str) -> StoryMetrics:
    """
    Metrics for a parsed breakdown.

    A story index gives exact counts; otherwise fall back to text mining.
    """
    if breakdown.source == STORY_INDEX_KEY and breakdown.stories:
        return StoryMetrics(
            epics_count=len(breakdown.epics) or DEFAULT_EPICS_COUNT,
            stories_count=len(breakdown.stories),
            total_points=breakdown.total_points,
        )
    return extract_story_metrics(text)


# =============================================================================
# Structured story index
# =============================================================================

def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return default


def _as_id_list(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return tuple(STORY_ID_PATTERN.findall(value))
    if isinstance(value, list):
        return tuple(str(item).strip() for item in value if item)
    return ()


EPIC_PRIORITY_PATTERN = re.compile(r"^\s*\**(P[012])\b", re.IGNORECASE)

# Epic field -> keys accepted in the story index
EPIC_INDEX_KEYS = {
    "name": ("name", "title"),
    "description": ("description",),
    "business_value": ("business_value", "businessValue"),
    "success_metric": ("success_metric", "successMetric"),
    "estimated_effort": ("effort", "estimated_effort", "estimatedEffort"),
    "priority": ("priority",),
}


def _epic_from_fields(fields: Dict[str, str]) -> Epic:
    """Build an Epic from loosely keyed text fields."""
    def pick(name: str) -> str:
        for key in EPIC_INDEX_KEYS[name]:
            value = fields.get(key)
            if value and value.strip():
                return value.strip()
        return ""

    epic_id = fields["id"]
    priority = EPIC_PRIORITY_PATTERN.match(pick("priority"))
    return Epic(
        id=epic_id,
        name=pick("name") or epic_id,
        description=pick("description"),
        business_value=pick("business_value"),
        success_metric=pick("success_metric"),
        estimated_effort=EffortSize.parse(pick("estimated_effort")),
        priority=Priority.parse(priority.group(1)) if priority else None,
    )


def _story_from_index(item: Dict[str, Any]) -> Optional[UserStory]:
    story_id = item.get("id")
    if not story_id:
        return None
    return UserStory(
        id=str(story_id),
        title=str(item.get("title") or story_id),
        epic_id=str(item["epic"]) if item.get("epic") else None,
        points=_as_int(item.get("points"), DEFAULT_POINTS),
        priority=Priority.parse(item.get("priority")),
        dependencies=_as_id_list(item.get("dependencies")),
    )


def parse_story_index(text: str) -> Optional[StoryBreakdown]:
    """
    Parse the fenced ``yaml`` story index, if present.

    The last YAML block carrying a ``story_index`` key wins.

    Returns:
        StoryBreakdown, or None when no usable index exists
    """
    for block in reversed(YAML_BLOCK_PATTERN.findall(text or "")):
        if STORY_INDEX_KEY not in block:
            continue

        try:
            data = yaml.safe_load(block)
        except yaml.YAMLError as e:
            logger.warning(f"Story index is not valid YAML, falling back to Markdown parsing: {e}")
            return None

        index = data.get(STORY_INDEX_KEY) if isinstance(data, dict) else None
        if not isinstance(index, dict):
            logger.warning("Story index block has no mapping, falling back to Markdown parsing")
            return None

        story_items = index.get("stories") or []
        epic_items = index.get("epics") or []
        if not isinstance(story_items, list) or not isinstance(epic_items, list):
            logger.warning("Story index stories/epics are not lists, falling back to Markdown parsing")
            return None

        stories = [
            story for story in (
                _story_from_index(item)
                for item in story_items
                if isinstance(item, dict)
            )
            if story is not None
        ]

        epics = [
            _epic_from_fields({str(key): str(value) for key, value in item.items() if value is not None})
            for item in epic_items
            if isinstance(item, dict) and item.get("id")
        ]

        return StoryBreakdown(epics=_link_stories(epics, stories), stories=stories, source=STORY_INDEX_KEY)

    return None


# =============================================================================
# Markdown fallback
# =============================================================================

PRIORITY_PATTERN = re.compile(r"Priority:\**\s*(P[012])", re.IGNORECASE)
POINTS_PATTERN = re.compile(r"(?:Story\s+)?Points:\**\s*(\d+)", re.IGNORECASE)
DEPENDENCY_LINE_PATTERN = re.compile(r"(?:Blocked by|Dependencies):?\**:?\s*(.+)", re.IGNORECASE)
PERSONA_PATTERN = re.compile(
    r"As an?\**\s+(?P<as_a>.+?),?\s*\n\s*\**I want\**\s+(?P<i_want>.+?),?\s*\n\s*\**So that\**\s+(?P<so_that>.+?)\.?\s*$",
    re.IGNORECASE | re.MULTILINE,
)
INLINE_PERSONA_PATTERN = re.compile(
    r"As an?\**\s+(?P<as_a>[^,\n]+),\s*\**I want\**\s+(?P<i_want>[^,\n]+),\s*\**so that\**\s+(?P<so_that>[^\n]+?)\.?\"?\s*$",
    re.IGNORECASE | re.MULTILINE,
)
CRITERION_PATTERN = re.compile(
    r"\**Given\**\s+(?P<given>.+?),?\s+\**When\**\s+(?P<when>.+?),?\s+\**Then\**\s+(?P<then>.+?)\s*$",
    re.IGNORECASE | re.MULTILINE,
)
CHECKBOX_PATTERN = re.compile(r"^\s*[-*]\s*\[[ xX]\]\s*(.+?)\s*$", re.MULTILINE)
EPIC_CELL_PATTERN = re.compile(r"^\**(EPIC-\d+)\**[:\s\-]*(.*)$")
# Table header keyword -> epic field, first match wins
EPIC_COLUMN_KEYWORDS = (
    ("name", "name"),
    ("title", "name"),
    ("description", "description"),
    ("value", "business_value"),
    ("metric", "success_metric"),
    ("effort", "effort"),
    ("size", "effort"),
    ("priority", "priority"),
)
EPIC_HEADING_PATTERN = re.compile(r"^#{2,3}\s+(?:Epic:?\s*)?(EPIC-\d+)\s*[:\-]?\s*(.*?)\s*$", re.MULTILINE | re.IGNORECASE)


def _story_blocks(text: str) -> Iterable[Tuple[str, str, str]]:
    """Yield (story id, title, block text) for each ``### US-n: Title`` heading."""
    for match in STORY_HEADING_PATTERN.finditer(text):
        start = match.end()
        end_match = BLOCK_END_PATTERN.search(text, start)
        end = end_match.start() if end_match else len(text)
        yield match.group(1), match.group(2).strip(), text[start:end]


def _section(block: str, label: str) -> str:
    """Text after a line mentioning ``label``, up to the next heading or label."""
    match = re.search(rf"^.*{label}.*$", block, re.IGNORECASE | re.MULTILINE)
    if not match:
        return ""
    rest = block[match.end():]
    end = re.search(r"^\s*(?:#{1,6}\s|\*\*[^*|]+:\*\*\s*$)", rest, re.MULTILINE)
    return rest[:end.start()] if end else rest


def _markdown_tables(text: str) -> Iterable[Tuple[List[str], List[List[str]]]]:
    """Yield (header cells, data rows) for each Markdown table in the text."""
    tables: List[List[List[str]]] = []
    in_table = False
    for line in text.splitlines():
        line = line.strip()
        if not line.startswith("|"):
            in_table = False
            continue
        if not in_table:
            tables.append([])
            in_table = True
        tables[-1].append([cell.strip() for cell in line.strip("|").split("|")])

    for table in tables:
        rows = [row for row in table[1:] if not all(set(cell) <= set("-: ") for cell in row)]
        yield table[0], rows


def _table_rows(section: str) -> List[List[str]]:
    """Data rows of the first Markdown table in a section (header and rule skipped)."""
    for _, rows in _markdown_tables(section):
        return rows
    return []


def _test_cases(block: str) -> StoryTestCases:
    happy = [
        HappyPathStep(step=_as_int(row[0], index + 1), action=row[1], expected_result=row[2])
        for index, row in enumerate(_table_rows(_section(block, "Happy Path")))
        if len(row) >= 3
    ]
    edges = [
        EdgeCase(scenario=row[0], input=row[1], expected_behavior=row[2])
        for row in _table_rows(_section(block, "Edge Cases"))
        if len(row) >= 3
    ]
    errors = [
        ErrorScenario(scenario=row[0], trigger=row[1], expected_behavior=row[2])
        for row in _table_rows(_section(block, "Error Scenarios"))
        if len(row) >= 3
    ]
    return StoryTestCases(happy_path=tuple(happy), edge_cases=tuple(edges), error_scenarios=tuple(errors))


def _technical_notes(block: str) -> Tuple[str, ...]:
    section = _section(block, "Technical Notes")
    return tuple(
        line.strip()[2:].strip()
        for line in section.splitlines()
        if line.strip().startswith(("- ", "* "))
    )


def _dependencies(block: str, story_id: str) -> Tuple[str, ...]:
    found: List[str] = []
    for match in DEPENDENCY_LINE_PATTERN.finditer(block):
        for dep in STORY_ID_PATTERN.findall(match.group(1)):
            if dep != story_id and dep not in found:
                found.append(dep)
    return tuple(found)


def _parse_story_block(story_id: str, title: str, block: str) -> UserStory:
    priority = PRIORITY_PATTERN.search(block)
    points = POINTS_PATTERN.search(block)
    epic = EPIC_ID_PATTERN.search(block)
    persona = PERSONA_PATTERN.search(block) or INLINE_PERSONA_PATTERN.search(block)

    criteria = tuple(
        AcceptanceCriterion(
            given=m.group("given").strip(),
            when=m.group("when").strip(),
            then=m.group("then").strip(),
        )
        for m in CRITERION_PATTERN.finditer(block)
    )

    return UserStory(
        id=story_id,
        title=title,
        epic_id=epic.group(0) if epic else None,
        points=int(points.group(1)) if points else DEFAULT_POINTS,
        priority=Priority.parse(priority.group(1)) if priority else Priority.P1,
        as_a=persona.group("as_a").strip("* ") if persona else "",
        i_want=persona.group("i_want").strip("* ") if persona else "",
        so_that=persona.group("so_that").strip("* ") if persona else "",
        acceptance_criteria=criteria,
        definition_of_done=tuple(CHECKBOX_PATTERN.findall(block)),
        test_cases=_test_cases(block),
        technical_notes=_technical_notes(block),
        dependencies=_dependencies(block, story_id),
    )


def _epic_column(header: str) -> Optional[str]:
    label = header.strip("* ").lower()
    for keyword, key in EPIC_COLUMN_KEYWORDS:
        if keyword in label:
            return key
    return None


def _epic_table_fields(text: str) -> Iterable[Dict[str, str]]:
    """Field dicts for table rows whose epic column holds an ``EPIC-n`` id."""
    for header, rows in _markdown_tables(text):
        columns = [_epic_column(cell) for cell in header]
        id_column = next(
            (
                i for i, cell in enumerate(header)
                if columns[i] is None and re.search(r"epic|\bid\b", cell, re.IGNORECASE)
            ),
            0,
        )
        for row in rows:
            match = EPIC_CELL_PATTERN.match(row[id_column]) if id_column < len(row) else None
            if not match:
                continue

            fields = {"id": match.group(1)}
            if match.group(2).strip("* "):
                fields["name"] = match.group(2).strip("* ")
            for key, cell in zip(columns, row):
                if key is not None and cell.strip("* "):
                    fields.setdefault(key, cell.strip("* "))

            # Unlabelled second column, as in "| EPIC-1 | Accounts |"
            following = id_column + 1
            if "name" not in fields and following < len(row) and columns[following] is None:
                name = row[following].strip("* ")
                if name:
                    fields["name"] = name
            yield fields


def _parse_epics(text: str) -> List[Epic]:
    """Epics from overview table rows or ``EPIC-n`` headings, first mention wins."""
    epics: Dict[str, Epic] = {}

    for fields in _epic_table_fields(text):
        epics.setdefault(fields["id"], _epic_from_fields(fields))
    for match in EPIC_HEADING_PATTERN.finditer(text):
        epic_id = match.group(1)
        epics.setdefault(epic_id, Epic(id=epic_id, name=match.group(2).strip("* ") or epic_id))
    for epic_id in EPIC_ID_PATTERN.findall(text):
        epics.setdefault(epic_id, Epic(id=epic_id, name=epic_id))

    return list(epics.values())


def _link_stories(epics: List[Epic], stories: List[UserStory]) -> List[Epic]:
    by_id = {epic.id: epic for epic in epics}
    for story in stories:
        epic = by_id.get(story.epic_id)
        if epic is not None and story.id not in epic.story_ids:
            epic.story_ids.append(story.id)
    return epics


def parse_story_markdown(text: str) -> StoryBreakdown:
    """Regex parse of ``### US-n: Title`` blocks and epic references."""
    text = text or ""
    stories = [_parse_story_block(*parts) for parts in _story_blocks(text)]
    epics = _parse_epics(text)
    return StoryBreakdown(epics=_link_stories(epics, stories), stories=stories, source="markdown")


def parse_story_breakdown(text: str) -> StoryBreakdown:
    """
    Read epics and stories from a generated stories document.

    Prefers the structured story index; falls back to Markdown parsing.
    """
    breakdown = parse_story_index(text)
    if breakdown is not None and breakdown.stories:
        logger.debug(f"Parsed {len(breakdown.stories)} stories from story index")
        return breakdown

    breakdown = parse_story_markdown(text)
    logger.debug(f"Parsed {len(breakdown.stories)} stories from Markdown")
    return breakdown
