"""Unit tests for source documents, prompt context and prompt templates."""

from datetime import date

import pytest
from docarchitect.context.documents import (
    read_document,
    read_source_documents,
    extract_key_sections,
    find_documents,
    is_supported_document_type,
    TRUNCATED_MARKER,
)
from docarchitect.context.builder import (
    ContextOptions,
    build_prompt_context,
    build_interactive_context,
    TRUNCATION_MARKER,
)
from docarchitect.context.prompts import (
    DEFAULT_FRONTEND_STACK,
    filter_frontend_tech,
    build_prd_prompt,
    build_tdr_prompt,
    build_frontend_tdr_prompt,
    build_stories_prompt,
)
from docarchitect.core.config import ContextSettings
from docarchitect.project import normalize_config
from docarchitect.project.models import ProjectConfig, TeamContext


RUN_DATE = date(2025, 1, 15)

LONG_DOCUMENT = "\n".join([
    "# Widget Platform",
    "",
    "## Overview",
    "Widgets for everyone.",
    "",
    "## Background",
    "x" * 3000,
    "",
    "## Requirements",
    "- Create widgets",
    "- Share widgets",
    "",
    "## Appendix",
    "y" * 3000,
])


class TestReadDocuments:
    """Tests for reading source documents."""

    def test_read_relative_to_base(self, tmp_path):
        (tmp_path / "brief.md").write_text("# Brief\n\nHello", encoding="utf-8")
        doc = read_document("brief.md", tmp_path)
        assert doc.success
        assert doc.filename == "brief.md"
        assert doc.content.startswith("# Brief")

    def test_missing_file_is_recorded(self, tmp_path):
        doc = read_document("missing.md", tmp_path)
        assert not doc.success
        assert "File not found" in doc.error

    def test_directory_is_not_a_file(self, tmp_path):
        (tmp_path / "folder").mkdir()
        doc = read_document("folder", tmp_path)
        assert not doc.success
        assert "Not a file" in doc.error

    def test_invalid_utf8_is_recorded(self, tmp_path):
        (tmp_path / "bad.md").write_bytes(b"\xff\xfe\xfa")
        doc = read_document("bad.md", tmp_path)
        assert not doc.success

    def test_batch_keeps_good_documents(self, tmp_path):
        (tmp_path / "a.md").write_text("Alpha", encoding="utf-8")
        (tmp_path / "b.md").write_text("Beta", encoding="utf-8")
        batch = read_source_documents(["a.md", "missing.md", "b.md"], tmp_path)

        assert [d.filename for d in batch.documents] == ["a.md", "b.md"]
        assert [e.path for e in batch.errors] == ["missing.md"]
        assert batch.combined_content == "---\n## Source: a.md\n\nAlpha\n\n---\n## Source: b.md\n\nBeta"
        assert batch.total_characters == len(batch.combined_content)

    def test_find_documents(self, tmp_path):
        (tmp_path / "b.md").write_text("b", encoding="utf-8")
        (tmp_path / "a.txt").write_text("a", encoding="utf-8")
        (tmp_path / "image.png").write_bytes(b"png")
        nested = tmp_path / "nested"
        nested.mkdir()
        (nested / "c.markdown").write_text("c", encoding="utf-8")

        assert [p.name for p in find_documents(tmp_path)] == ["a.txt", "b.md"]
        assert [p.name for p in find_documents(tmp_path, recursive=True)] == ["a.txt", "b.md", "c.markdown"]

    def test_find_documents_missing_dir(self, tmp_path):
        assert find_documents(tmp_path / "nope") == []

    def test_supported_types(self):
        assert is_supported_document_type("notes.MD")
        assert not is_supported_document_type("diagram.png")


class TestExtractKeySections:
    """Tests for extract_key_sections."""

    def test_short_content_unchanged(self):
        assert extract_key_sections("# Title\n\nshort", 100) == "# Title\n\nshort"

    def test_keeps_priority_sections(self):
        result = extract_key_sections(LONG_DOCUMENT, 500)
        assert result.startswith("# Widget Platform")
        assert "## Overview\nWidgets for everyone." in result
        assert "## Requirements" in result
        assert "## Background" not in result
        assert "## Appendix" not in result

    def test_keeps_problem_statement(self):
        content = "# Doc\n\n## Problem Statement\nUsers lose tasks.\n\n## Notes\n" + "n" * 4000
        result = extract_key_sections(content, 1000)
        assert "## Problem Statement\nUsers lose tasks." in result
        assert "## Notes" not in result

    def test_never_exceeds_limit(self):
        for limit in (20, 60, 200, 1000):
            assert len(extract_key_sections(LONG_DOCUMENT, limit)) <= limit

    def test_skips_sections_that_do_not_fit(self):
        result = extract_key_sections(LONG_DOCUMENT, 30)
        assert result == "# Widget Platform"

    def test_truncates_without_priority_sections(self):
        content = "plain text " * 100
        result = extract_key_sections(content, 100)
        assert result.endswith(TRUNCATED_MARKER)
        assert len(result) == 100

    def test_limit_shorter_than_marker(self):
        assert extract_key_sections("plain text " * 100, 5) == "plain"


class TestBuildPromptContext:
    """Tests for build_prompt_context."""

    @pytest.fixture
    def config(self):
        return normalize_config({
            "projectName": "Demo",
            "context": "  A task tracker  ",
            "interviewAnswers": {"customTopic": "custom", "problem": "Lost tasks", "scale": "  "},
            "techStack": ["React", "FastAPI"],
            "teamContext": {"velocity": 30},
        })

    def test_sections_in_order(self, config):
        built = build_prompt_context(config)
        assert built.included_sections == [
            "Project Header",
            "User Context",
            "Interview Answers",
            "Tech Stack",
            "Team Context",
        ]
        text = built.rendered_text
        assert text.startswith("## Project: Demo")
        assert "## User-Provided Context\n\nA task tracker" in text
        assert "## Tech Stack\n\nReact, FastAPI" in text
        assert "Velocity: 30 points/sprint" in text

    def test_known_questions_first(self, config):
        built = build_prompt_context(config)
        assert built.answered_questions == ["problem", "customTopic"]
        text = built.rendered_text
        assert text.index("**Problem:**") < text.index("**Custom Topic:**")
        assert "**Scale:**" not in text

    def test_reference_documents(self, tmp_path):
        (tmp_path / "brief.md").write_text("# Brief\n\nDetails", encoding="utf-8")
        config = normalize_config({"projectName": "Demo", "sourceDocuments": ["brief.md", "gone.md"]})
        built = build_prompt_context(config, ContextOptions(base_path=tmp_path))

        assert "Reference Documents" in built.included_sections
        assert "### Source: brief.md" in built.rendered_text
        assert built.source_filenames == ["brief.md"]
        assert len(built.document_errors) == 1
        assert built.document_errors[0].startswith("gone.md:")

    def test_source_documents_can_be_disabled(self, tmp_path):
        (tmp_path / "brief.md").write_text("Details", encoding="utf-8")
        config = normalize_config({"projectName": "Demo", "sourceDocuments": ["brief.md"]})
        built = build_prompt_context(config, ContextOptions(include_source_docs=False, base_path=tmp_path))
        assert "Reference Documents" not in built.included_sections

    def test_large_source_documents_are_condensed(self, tmp_path):
        (tmp_path / "big.md").write_text(LONG_DOCUMENT, encoding="utf-8")
        config = normalize_config({"projectName": "Demo", "sourceDocuments": ["big.md"]})
        built = build_prompt_context(config, ContextOptions(base_path=tmp_path, max_per_document=500))
        assert "## Appendix" not in built.rendered_text

    def test_legacy_requirements_shown_once(self):
        config = normalize_config({
            "projectName": "Demo",
            "description": "Todo",
            "requirements": ["Add tasks"],
        })
        built = build_prompt_context(config)
        assert "Requirements" not in built.included_sections
        assert "Key requirements:\n- Add tasks" in built.rendered_text

    def test_raw_requirements_section(self):
        config = ProjectConfig(project_name="Demo", context="c", requirements=["Add tasks"])
        built = build_prompt_context(config)
        assert "## Requirements\n\n- Add tasks" in built.rendered_text

    def test_truncation(self):
        config = ProjectConfig(project_name="Demo", context="z" * 5000)
        built = build_prompt_context(config, ContextOptions(max_length=1000))
        assert built.truncated
        assert built.total_length == 1000
        assert built.rendered_text.endswith(TRUNCATION_MARKER)

    def test_truncation_below_marker_length(self):
        config = ProjectConfig(project_name="Demo", context="z" * 500)
        built = build_prompt_context(config, ContextOptions(max_length=5))
        assert built.truncated
        assert built.rendered_text == "## Pr"

    def test_options_from_settings(self):
        options = ContextOptions.from_settings(ContextSettings(max_length=42, max_per_document=7))
        assert (options.max_length, options.max_per_document) == (42, 7)


class TestBuildInteractiveContext:
    """Tests for build_interactive_context."""

    def test_empty_when_only_header(self):
        assert build_interactive_context(ProjectConfig(project_name="Demo")) == ""

    def test_preface(self):
        preface = build_interactive_context(ProjectConfig(project_name="Demo", context="Todo app"))
        assert preface.startswith("## Pre-loaded Context")
        assert "Todo app" in preface
        assert "Skip questions that are already answered" in preface


class TestPrompts:
    """Tests for document prompt templates."""

    @pytest.fixture
    def config(self):
        return ProjectConfig(
            project_name="Demo",
            context="Todo app",
            tech_stack=["React", "PostgreSQL", "Tailwind CSS"],
            team_context=TeamContext(velocity=24, sprint_duration=3, team_size=5),
            author="Jane",
        )

    @pytest.fixture
    def built(self, config):
        return build_prompt_context(config)

    def test_filter_frontend_tech(self):
        assert filter_frontend_tech(["React", "PostgreSQL", "Tailwind CSS"]) == ["React", "Tailwind CSS"]
        assert filter_frontend_tech(["Go", "Redis"]) == []

    def test_prd_prompt(self, config, built):
        prompt = build_prd_prompt(config, built, RUN_DATE)
        assert prompt.startswith("## AUTOMATION MODE - DIRECT GENERATION")
        assert "complete PRD document" in prompt
        assert built.rendered_text in prompt
        assert "- **Author:** Jane" in prompt
        assert "- **Date:** 2025-01-15" in prompt
        assert prompt.endswith("# Demo - Product Requirements Document")

    def test_tdr_prompt_includes_prd(self, config, built):
        prompt = build_tdr_prompt(config, built, "# Demo PRD\n\nGoals", RUN_DATE)
        assert "## PRD Context (for reference)\n\n# Demo PRD" in prompt
        assert prompt.endswith("# Demo - Technical Design Review")

    def test_tdr_prompt_condenses_prd(self, config, built):
        prompt = build_tdr_prompt(config, built, LONG_DOCUMENT, RUN_DATE, prd_excerpt=500)
        assert "## Appendix" not in prompt

    def test_tdr_prompt_without_prd(self, config, built):
        assert "PRD Context" not in build_tdr_prompt(config, built, "", RUN_DATE)

    def test_frontend_prompt_stack(self, config, built):
        prompt = build_frontend_tdr_prompt(config, built, "prd", "tdr", RUN_DATE)
        assert "- **Frontend Stack:** React, Tailwind CSS" in prompt
        assert "## TDR Context (for reference)\n\ntdr" in prompt

    def test_frontend_prompt_default_stack(self, built):
        config = ProjectConfig(project_name="Demo", context="c", tech_stack=["Go"])
        prompt = build_frontend_tdr_prompt(config, built, "", "", RUN_DATE)
        assert f"- **Frontend Stack:** {DEFAULT_FRONTEND_STACK}" in prompt

    def test_stories_prompt(self, config, built):
        prompt = build_stories_prompt(config, built, "## PRD Summary\nGoals")
        assert "## Document Context\n\n## PRD Summary\nGoals" in prompt
        assert "- **Team Velocity:** 24 story points per sprint" in prompt
        assert "- **Sprint Duration:** 3 weeks" in prompt
        assert "- Code reviewed by at least 1 team member" in prompt
        assert "story_index:" in prompt
        assert prompt.endswith("# Epics & User Stories for Demo")
