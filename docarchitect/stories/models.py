"""
Story models - Epics, user stories and sprint plans.

UserStory and SprintPlanEntry are frozen: the planner returns new story
records stamped with their sprint instead of mutating its input.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


FIBONACCI_POINTS = (1, 2, 3, 5, 8, 13)
DEFAULT_POINTS = 5

DEFAULT_EPICS_COUNT = 3
DEFAULT_STORIES_COUNT = 10


class Priority(Enum):
    """Story/epic priority; the value sorts lexically in priority order."""
    P0 = "P0"  # Must have
    P1 = "P1"  # Should have
    P2 = "P2"  # Nice to have

    @classmethod
    def parse(cls, value: Any, default: 'Priority' = None) -> 'Priority':
        """Parse a label like "P0" or "p1"; unknown values give the default."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return default if default is not None else cls.P1


EFFORT_NAMES = {
    "SMALL": "S",
    "MEDIUM": "M",
    "LARGE": "L",
    "EXTRA LARGE": "XL",
    "EXTRA-LARGE": "XL",
}


class EffortSize(Enum):
    """T-shirt size estimate for an epic."""
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"

    @classmethod
    def parse(cls, value: Any) -> Optional['EffortSize']:
        """Parse "M", "xl" or a spelled-out size; unknown values give None."""
        if isinstance(value, cls):
            return value
        label = str(value or "").strip().upper()
        label = EFFORT_NAMES.get(label, label)
        try:
            return cls(label)
        except ValueError:
            return None


@dataclass(frozen=True)
class AcceptanceCriterion:
    given: str
    when: str
    then: str


@dataclass(frozen=True)
class HappyPathStep:
    step: int
    action: str
    expected_result: str


@dataclass(frozen=True)
class EdgeCase:
    scenario: str
    input: str
    expected_behavior: str


@dataclass(frozen=True)
class ErrorScenario:
    scenario: str
    trigger: str
    expected_behavior: str


@dataclass(frozen=True)
class StoryTestCases:
    happy_path: Tuple[HappyPathStep, ...] = ()
    edge_cases: Tuple[EdgeCase, ...] = ()
    error_scenarios: Tuple[ErrorScenario, ...] = ()


@dataclass(frozen=True)
class UserStory:
    """
    A single user story.

    ``points`` is normally a Fibonacci value but is not enforced, since
    generated text occasionally uses other numbers.
    """
    id: str
    title: str
    epic_id: Optional[str] = None
    points: int = DEFAULT_POINTS
    priority: Priority = Priority.P1
    as_a: str = ""
    i_want: str = ""
    so_that: str = ""
    acceptance_criteria: Tuple[AcceptanceCriterion, ...] = ()
    definition_of_done: Tuple[str, ...] = ()
    test_cases: StoryTestCases = field(default_factory=StoryTestCases)
    technical_notes: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    sprint: Optional[int] = None

    @property
    def is_fibonacci(self) -> bool:
        return self.points in FIBONACCI_POINTS

    def depends_on(self, other: 'UserStory') -> bool:
        return other.id in self.dependencies

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "epicId": self.epic_id,
            "storyPoints": self.points,
            "priority": self.priority.value,
            "dependencies": list(self.dependencies),
            "sprint": self.sprint,
        }


@dataclass
class Epic:
    """A group of related stories."""
    id: str
    name: str
    description: str = ""
    business_value: str = ""
    success_metric: str = ""
    estimated_effort: Optional[EffortSize] = None
    priority: Optional[Priority] = None
    story_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "businessValue": self.business_value,
            "successMetric": self.success_metric,
            "priority": self.priority.value if self.priority else None,
            "estimatedEffort": self.estimated_effort.value if self.estimated_effort else None,
            "stories": list(self.story_ids),
        }


@dataclass(frozen=True)
class SprintPlanEntry:
    """One sprint: its stories, their summed points and a focus label."""
    sprint_number: int
    story_ids: Tuple[str, ...]
    total_points: int
    focus: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sprintNumber": self.sprint_number,
            "stories": list(self.story_ids),
            "totalPoints": self.total_points,
            "focus": self.focus,
        }


@dataclass
class SprintPlan:
    """Sprint entries plus the stories stamped with their sprint numbers."""
    entries: List[SprintPlanEntry] = field(default_factory=list)
    stories: List[UserStory] = field(default_factory=list)
    velocity: int = 20

    @property
    def sprint_count(self) -> int:
        return len(self.entries)

    @property
    def total_points(self) -> int:
        return sum(entry.total_points for entry in self.entries)

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]


@dataclass(frozen=True)
class StoryMetrics:
    """Counts mined from generated story text."""
    epics_count: int = DEFAULT_EPICS_COUNT
    stories_count: int = DEFAULT_STORIES_COUNT
    total_points: int = DEFAULT_STORIES_COUNT * DEFAULT_POINTS

    def estimated_sprints(self, velocity: int) -> int:
        """Sprints needed at the given velocity, rounded up."""
        if velocity <= 0:
            raise ValueError(f"velocity must be positive, got {velocity}")
        return math.ceil(self.total_points / velocity)

    def to_dict(self) -> Dict[str, int]:
        return {
            "epics": self.epics_count,
            "stories": self.stories_count,
            "totalPoints": self.total_points,
        }


@dataclass
class StoryBreakdown:
    """Epics and stories read back from a stories document."""
    epics: List[Epic] = field(default_factory=list)
    stories: List[UserStory] = field(default_factory=list)
    source: str = "markdown"  # "story_index" or "markdown"

    def epic(self, epic_id: Optional[str]) -> Optional[Epic]:
        for epic in self.epics:
            if epic.id == epic_id:
                return epic
        return None

    @property
    def total_points(self) -> int:
        return sum(story.points for story in self.stories)
