"""
Sprint Planner - Orders stories and allocates them to sprints.

Allocation is greedy first-fit-in-order: walk the ordered stories, close
the current sprint when the next story would push it past the velocity
(and it already holds a story), and always flush the last sprint. There
is no look-ahead or rebalancing, so the sprint count is not optimal.
"""

import heapq
from dataclasses import replace
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence

from .models import Epic, SprintPlan, SprintPlanEntry, UserStory
from ..core.config import DependencyOrdering
from ..utils.logger import get_logger

logger = get_logger(__name__)


GENERAL_FOCUS = "General"


def _pairwise_compare(a: UserStory, b: UserStory) -> int:
    """Priority label first, then direct dependency between the two stories."""
    if a.priority != b.priority:
        return -1 if a.priority.value < b.priority.value else 1
    if a.depends_on(b):
        return 1
    if b.depends_on(a):
        return -1
    return 0


def _topological_order(stories: Sequence[UserStory]) -> List[UserStory]:
    """
    Kahn's algorithm with (priority, input position) as the tie-break.

    Nodes are input positions, so stories sharing an id are all placed; a
    dependency on a shared id waits for every story carrying it.
    Dependencies on unknown ids are ignored. Stories caught in a cycle are
    appended afterwards in priority order.
    """
    positions: Dict[str, List[int]] = {}
    for index, story in enumerate(stories):
        positions.setdefault(story.id, []).append(index)

    indegree = [0] * len(stories)
    dependents: List[List[int]] = [[] for _ in stories]
    for index, story in enumerate(stories):
        for dep in set(story.dependencies):
            if dep == story.id:
                continue
            for dep_index in positions.get(dep, []):
                indegree[index] += 1
                dependents[dep_index].append(index)

    def key(index: int):
        return (stories[index].priority.value, index)

    ready = [key(index) for index, degree in enumerate(indegree) if degree == 0]
    heapq.heapify(ready)

    ordered: List[int] = []
    while ready:
        _, index = heapq.heappop(ready)
        ordered.append(index)
        for dependent in dependents[index]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                heapq.heappush(ready, key(dependent))

    if len(ordered) < len(stories):
        placed = set(ordered)
        remaining = [index for index in range(len(stories)) if index not in placed]
        logger.warning(
            f"Dependency cycle among {', '.join(stories[i].id for i in remaining)}; ordering them by priority"
        )
        ordered.extend(sorted(remaining, key=key))

    return [stories[index] for index in ordered]


def order_stories(
    stories: Iterable[UserStory],
    strategy: DependencyOrdering = DependencyOrdering.PAIRWISE,
) -> List[UserStory]:
    """
    Order stories for allocation.

    PAIRWISE sorts by priority and only checks direct dependencies between
    two compared stories, so transitive chains are not guaranteed.
    TOPOLOGICAL respects the full dependency graph.
    """
    stories = list(stories)
    if strategy == DependencyOrdering.TOPOLOGICAL:
        return _topological_order(stories)
    return sorted(stories, key=cmp_to_key(_pairwise_compare))


def _focus(stories: Sequence[UserStory], epics: Dict[str, Epic]) -> str:
    names: List[str] = []
    for story in stories:
        epic = epics.get(story.epic_id) if story.epic_id else None
        name = epic.name if epic else GENERAL_FOCUS
        if name not in names:
            names.append(name)
    return ", ".join(names)


def plan_sprints(
    stories: Iterable[UserStory],
    epics: Optional[Iterable[Epic]] = None,
    velocity: int = 20,
    strategy: DependencyOrdering = DependencyOrdering.PAIRWISE,
) -> SprintPlan:
    """
    Allocate stories to sprints.

    Args:
        stories: Stories to place (not modified)
        epics: Epics used for the focus label of each sprint
        velocity: Story points per sprint
        strategy: How dependencies affect ordering

    Returns:
        SprintPlan with entries and new story records stamped with their sprint

    Raises:
        ValueError: If velocity is not positive
    """
    if velocity <= 0:
        raise ValueError(f"velocity must be positive, got {velocity}")

    epic_map = {epic.id: epic for epic in (epics or [])}
    ordered = order_stories(stories, strategy)

    entries: List[SprintPlanEntry] = []
    assigned: List[UserStory] = []
    current: List[UserStory] = []
    current_points = 0

    def close_sprint():
        entries.append(SprintPlanEntry(
            sprint_number=len(entries) + 1,
            story_ids=tuple(story.id for story in current),
            total_points=current_points,
            focus=_focus(current, epic_map),
        ))

    for story in ordered:
        if current_points + story.points > velocity and current:
            close_sprint()
            current = []
            current_points = 0

        current.append(story)
        current_points += story.points
        assigned.append(replace(story, sprint=len(entries) + 1))

    if current:
        close_sprint()

    logger.debug(f"Planned {len(assigned)} stories into {len(entries)} sprints at velocity {velocity}")
    return SprintPlan(entries=entries, stories=assigned, velocity=velocity)
