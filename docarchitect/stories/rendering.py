"""
Markdown rendering for sprint plans and story dependency graphs.
"""

from typing import Dict, List, Sequence

from .models import SprintPlan, UserStory


TITLE_LIMIT = 20


def render_sprint_plan_table(plan: SprintPlan) -> str:
    """Render the plan as a Markdown table (Sprint, Focus, Stories, Points)."""
    lines = [
        "| Sprint | Focus | Stories | Points |",
        "|--------|-------|---------|--------|",
    ]
    for entry in plan.entries:
        lines.append(
            f"| Sprint {entry.sprint_number} | {entry.focus} | "
            f"{', '.join(entry.story_ids)} | {entry.total_points} |"
        )
    return "\n".join(lines)


def _node_id(story_id: str) -> str:
    return story_id.replace("-", "")


def _node(story: UserStory) -> str:
    title = story.title
    if len(title) > TITLE_LIMIT:
        title = title[:TITLE_LIMIT] + "..."
    title = title.replace('"', "'")
    return f'{_node_id(story.id)}["{story.id}: {title}"]'


def render_dependency_graph(stories: Sequence[UserStory]) -> str:
    """
    Render a Mermaid ``graph LR`` of story dependencies.

    Stories with a sprint are grouped into one subgraph per sprint;
    unassigned stories are drawn at the top level.
    """
    groups: Dict[int, List[UserStory]] = {}
    for story in stories:
        groups.setdefault(story.sprint or 0, []).append(story)

    lines = ["```mermaid", "graph LR"]
    for sprint in sorted(groups):
        if sprint > 0:
            lines.append(f'    subgraph Sprint{sprint}["Sprint {sprint}"]')
            lines.extend(f"        {_node(story)}" for story in groups[sprint])
            lines.append("    end")
        else:
            lines.extend(f"    {_node(story)}" for story in groups[sprint])

    lines.append("")
    lines.append("    %% Dependencies")
    for story in stories:
        for dep in story.dependencies:
            lines.append(f"    {_node_id(dep)} --> {_node_id(story.id)}")

    lines.append("```")
    return "\n".join(lines)
