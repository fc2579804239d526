"""
Stories module - Story models, extraction from generated text and sprint planning.
"""

from .models import (
    Priority,
    EffortSize,
    Epic,
    AcceptanceCriterion,
    HappyPathStep,
    EdgeCase,
    ErrorScenario,
    StoryTestCases,
    UserStory,
    SprintPlanEntry,
    SprintPlan,
    StoryMetrics,
    StoryBreakdown,
)
from .extraction import (
    extract_story_metrics,
    metrics_from_breakdown,
    parse_story_index,
    parse_story_markdown,
    parse_story_breakdown,
)
from .planner import order_stories, plan_sprints
from .rendering import render_sprint_plan_table, render_dependency_graph

__all__ = [
    # Models
    'Priority',
    'EffortSize',
    'Epic',
    'AcceptanceCriterion',
    'HappyPathStep',
    'EdgeCase',
    'ErrorScenario',
    'StoryTestCases',
    'UserStory',
    'SprintPlanEntry',
    'SprintPlan',
    'StoryMetrics',
    'StoryBreakdown',
    # Extraction
    'extract_story_metrics',
    'metrics_from_breakdown',
    'parse_story_index',
    'parse_story_markdown',
    'parse_story_breakdown',
    # Planning
    'order_stories',
    'plan_sprints',
    # Rendering
    'render_sprint_plan_table',
    'render_dependency_graph',
]
