"""
Prompt templates for each generated document.

Every prompt starts with the same automation framing so the model writes
the document directly instead of running an interview.
"""

import re
from datetime import date
from typing import List

from .builder import BuiltContext
from .documents import extract_key_sections
from ..project.models import ProjectConfig


AUTOMATION_FRAMING = """## AUTOMATION MODE - DIRECT GENERATION

**IMPORTANT:** This is automation mode. Do NOT ask any interview questions.
Generate the complete {document} document immediately using the context below.
Output ONLY the Markdown document content. No greetings, no questions, no confirmations."""

FRONTEND_TECH_PATTERN = re.compile(
    r"react|next|vue|angular|svelte|tailwind|css|typescript|javascript",
    re.IGNORECASE,
)
DEFAULT_FRONTEND_STACK = "Next.js, React, TypeScript"

DEFINITION_OF_DONE = [
    "Code complete with unit tests (>80% coverage)",
    "Code reviewed by at least 1 team member",
    "All acceptance criteria verified",
    "Integration tests passing",
    "Documentation updated",
    "Deployed to staging and smoke tested",
]

STORY_INDEX_KEY = "story_index"


# =============================================================================
# System prompts (one per persona)
# =============================================================================

ARCHITECT_SYSTEM_PROMPT = """You are a Principal Software Architect and Senior Product Manager.
You write production-grade Product Requirements Documents and Technical Design Reviews
that engineering teams can implement without follow-up questions.

- Be specific: name technologies, limits, SLAs and data shapes.
- Use Markdown headings, tables and Mermaid.js diagrams where they help.
- Call out risks, trade-offs and common pitfalls for junior and mid-level developers."""

FRONTEND_ARCHITECT_SYSTEM_PROMPT = """You are a Staff Frontend Engineer specializing in React and Next.js.
You write Frontend Technical Design Reviews that apply Vercel's React/Next.js best practices:
eliminating request waterfalls, keeping bundles small, choosing server vs client components
deliberately and avoiding unnecessary re-renders.

- Show concrete code examples in TypeScript.
- Use Mermaid.js for component hierarchies.
- Contrast wrong and right approaches for common pitfalls."""

STORY_BUILDER_SYSTEM_PROMPT = """You are a Senior Agile Coach and Technical Product Owner.
You break PRDs and TDRs down into implementable, testable user stories that developers love:
clear, right-sized and independently deliverable where possible.

- Every story has Given/When/Then acceptance criteria and test cases.
- Story points use the Fibonacci scale: 1, 2, 3, 5, 8, 13.
- Priorities are P0 (must have), P1 (should have) or P2 (nice to have).
- Dependencies between stories are explicit."""


# =============================================================================
# Helpers
# =============================================================================

def filter_frontend_tech(tech_stack: List[str]) -> List[str]:
    """Keep only frontend-related technologies (may be empty)."""
    return [tech for tech in tech_stack if FRONTEND_TECH_PATTERN.search(tech)]


def _condense(content: str, max_length: int) -> str:
    if len(content) > max_length:
        return extract_key_sections(content, max_length)
    return content


def _header(document: str, built: BuiltContext) -> str:
    return f"{AUTOMATION_FRAMING.format(document=document)}\n\n---\n\n{built.rendered_text}\n"


def _requirements_block(config: ProjectConfig, run_date: date, extra: str = "") -> str:
    return (
        "\n---\n\n"
        "## Document Requirements\n"
        f"{extra}"
        f"- **Author:** {config.author_name}\n"
        f"- **Date:** {run_date.isoformat()}\n"
    )


# =============================================================================
# Document prompts
# =============================================================================

def build_prd_prompt(config: ProjectConfig, built: BuiltContext, run_date: date) -> str:
    """Prompt for the Product Requirements Document."""
    return (
        _header("PRD", built)
        + _requirements_block(config, run_date)
        + """
Generate the complete PRD now. Include:
1. Executive Summary (2-3 paragraphs)
2. Problem Statement with specific user pain points
3. Target Persona with role, goals, and frustrations
4. Goals and Success Metrics (table with KPIs)
5. Requirements organized by P0/P1/P2 priority
6. User Stories with acceptance criteria (at least 5 stories)
7. Timeline with milestones
8. Risks and mitigations

"""
        + f"Start the document with: # {config.project_name} - Product Requirements Document"
    )


def build_tdr_prompt(
    config: ProjectConfig,
    built: BuiltContext,
    prd_content: str,
    run_date: date,
    prd_excerpt: int = 4000,
) -> str:
    """Prompt for the Technical Design Review, given the PRD."""
    prompt = _header("TDR", built)

    if prd_content:
        prompt += f"\n---\n\n## PRD Context (for reference)\n\n{_condense(prd_content, prd_excerpt)}\n"

    return (
        prompt
        + _requirements_block(config, run_date)
        + """
Generate the complete TDR now. Include:
1. Executive Summary
2. System Architecture with Mermaid.js diagram (use graph TB)
3. Component breakdown table with responsibilities and SLAs
4. Database schema with SQL CREATE TABLE statements
5. API design with REST endpoints (method, path, request/response)
6. Security Audit (threat model, authentication code examples)
7. Scalability Plan (bottlenecks, SLIs/SLOs)
8. Implementation Guide with step-by-step instructions
9. Common Pitfalls for junior/mid developers
10. Code examples in TypeScript where applicable

"""
        + f"Start the document with: # {config.project_name} - Technical Design Review"
    )


def build_frontend_tdr_prompt(
    config: ProjectConfig,
    built: BuiltContext,
    prd_content: str,
    tdr_content: str,
    run_date: date,
    excerpt: int = 2000,
) -> str:
    """Prompt for the Frontend Technical Design Review."""
    prompt = _header("Frontend TDR", built)

    if prd_content:
        prompt += f"\n---\n\n## PRD Context (for reference)\n\n{extract_key_sections(prd_content, excerpt)}\n"
    if tdr_content:
        prompt += f"\n---\n\n## TDR Context (for reference)\n\n{extract_key_sections(tdr_content, excerpt)}\n"

    stack = ", ".join(filter_frontend_tech(config.tech_stack)) or DEFAULT_FRONTEND_STACK

    return (
        prompt
        + _requirements_block(config, run_date, extra=f"- **Frontend Stack:** {stack}\n")
        + """
Generate the complete Frontend TDR now. Apply Vercel React/Next.js best practices. Include:
1. Technology Stack table with version and rationale
2. Application Structure (Next.js App Router src/ folder format)
3. Component Hierarchy with Mermaid.js diagram
4. Server vs Client Component Strategy with code examples
5. Performance Optimizations (waterfalls, bundle size, re-renders) with code
6. State Management Strategy (local, global, server state)
7. Accessibility Implementation with focus trap and form examples
8. Testing Strategy with Vitest/RTL/Playwright examples
9. Vercel Best Practices Checklist (all 8 priority categories)
10. Common Pitfalls with wrong and right code examples
11. Implementation Checklist with weekly breakdown

"""
        + f"Start the document with: # {config.project_name} - Frontend Technical Design Review"
    )


def build_stories_prompt(config: ProjectConfig, built: BuiltContext, document_context: str) -> str:
    """
    Prompt for the epics and user stories document.

    The model is asked to end the document with a fenced ``yaml`` story
    index so the stories can be read back without scraping Markdown.
    """
    team = config.team
    dod = "\n".join(f"- {item}" for item in DEFINITION_OF_DONE)

    return (
        AUTOMATION_FRAMING.format(document="User Stories")
        + "\nDo NOT list available documents or ask which one to use."
        + f"\n\n---\n\n{built.rendered_text}\n"
        + f"\n---\n\n## Document Context\n\n{document_context}\n"
        + "\n---\n\n## Team Context\n"
        + f"- **Sprint Duration:** {team.sprint_duration} weeks\n"
        + f"- **Team Velocity:** {team.velocity} story points per sprint\n"
        + f"- **Team Size:** {team.team_size} engineers\n"
        + f"\n## Definition of Done\n{dod}\n"
        + """
Generate the complete User Stories document now. Include:

1. **Epics Overview Table**
   | Epic | Business Value | Success Metric | Dependencies | Effort |
   (Generate 3-5 epics with IDs EPIC-1, EPIC-2, etc.)

2. **User Stories** (Generate 8-12 detailed stories)
   For each story include:
   - Heading: ### US-001: Title
   - Format: "As a [persona], I want [action], so that [benefit]"
   - Epic: EPIC-n
   - Acceptance Criteria (3-5 Given/When/Then statements)
   - Definition of Done (5-7 checkboxes)
   - Test Cases:
     * Happy Path table (Step, Action, Expected Result)
     * Edge Cases table (Scenario, Input, Expected Behavior)
     * Error Scenarios table (Scenario, Trigger, Expected Behavior)
   - Technical Notes (2-3 implementation hints)
   - Story Points: 1, 2, 3, 5, 8, or 13
   - Priority: P0, P1, or P2
   - Dependencies: story IDs this story is blocked by, or None
   - Sprint: Sprint 1, Sprint 2, etc.

3. **Story Dependency Graph**
   ```mermaid
   graph LR
       US001 --> US002
       ...
   ```

4. **Sprint Plan Suggestion**
   | Sprint | Stories | Total Points | Focus |

5. **Story Index** as the final block of the document:
   ```yaml
   """
        + STORY_INDEX_KEY
        + """:
     epics:
       - id: EPIC-1
         name: Epic name
         priority: P0
         effort: M
         business_value: Why it matters
         success_metric: How success is measured
     stories:
       - id: US-001
         title: Story title
         epic: EPIC-1
         points: 5
         priority: P0
         dependencies: []
   ```

"""
        + f"Start the document with: # Epics & User Stories for {config.project_name}"
    )
