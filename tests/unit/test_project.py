"""Unit tests for project configuration normalization and validation."""

import json

import pytest
from docarchitect.project import (
    GenerationMode,
    ProjectConfig,
    TeamContext,
)
from docarchitect.project.normalizer import (
    LegacyConfigV1,
    FlexibleConfigV2,
    MinimalConfig,
    classify_config,
    fold_legacy_requirements,
    normalize_config,
    validate_config,
    parse_project_config,
    load_project_config,
)


class TestTeamContext:
    """Tests for TeamContext."""

    def test_defaults(self):
        team = TeamContext()
        assert (team.velocity, team.sprint_duration, team.team_size) == (20, 2, 4)

    def test_from_camel_case(self):
        team = TeamContext.from_dict({"velocity": 30, "sprintDuration": 3, "teamSize": 6})
        assert (team.velocity, team.sprint_duration, team.team_size) == (30, 3, 6)

    def test_from_snake_case(self):
        team = TeamContext.from_dict({"sprint_duration": 1, "team_size": 2})
        assert team.sprint_duration == 1
        assert team.team_size == 2
        assert team.velocity == 20

    def test_non_integer_falls_back(self):
        team = TeamContext.from_dict({"velocity": "fast", "teamSize": True})
        assert team.velocity == 20
        assert team.team_size == 4

    def test_summary(self):
        summary = TeamContext(velocity=25).summary()
        assert "Velocity: 25 points/sprint" in summary
        assert summary.count(" | ") == 2


class TestFoldLegacyRequirements:
    """Tests for fold_legacy_requirements."""

    def test_folds_into_mvp_scope(self):
        folded = fold_legacy_requirements({}, ["Login", "Dashboard"])
        assert folded["mvpScope"] == "Key requirements:\n- Login\n- Dashboard"

    def test_existing_answer_wins(self):
        folded = fold_legacy_requirements({"mvpScope": "Only login"}, ["Login", "Dashboard"])
        assert folded["mvpScope"] == "Only login"

    def test_blank_answer_is_replaced(self):
        folded = fold_legacy_requirements({"mvpScope": "   "}, ["Login"])
        assert folded["mvpScope"] == "Key requirements:\n- Login"

    def test_does_not_modify_input(self):
        answers = {"problem": "Slow onboarding"}
        fold_legacy_requirements(answers, ["Login"])
        assert answers == {"problem": "Slow onboarding"}

    def test_empty_requirements(self):
        assert fold_legacy_requirements({"problem": "x"}, []) == {"problem": "x"}


class TestClassifyConfig:
    """Tests for classify_config."""

    def test_legacy(self):
        variant = classify_config({
            "projectName": "Demo",
            "description": "A todo app",
            "requirements": ["Add tasks"],
        })
        assert isinstance(variant, LegacyConfigV1)

    def test_flexible(self):
        variant = classify_config({"projectName": "Demo", "context": "A todo app"})
        assert isinstance(variant, FlexibleConfigV2)

    def test_legacy_fields_with_context_is_flexible(self):
        variant = classify_config({
            "projectName": "Demo",
            "context": "A todo app",
            "description": "old",
            "requirements": ["Add tasks"],
        })
        assert isinstance(variant, FlexibleConfigV2)

    def test_legacy_fields_with_mode_is_flexible(self):
        variant = classify_config({
            "projectName": "Demo",
            "description": "desc",
            "requirements": ["a"],
            "mode": "PRD",
        })
        assert isinstance(variant, FlexibleConfigV2)

    def test_minimal(self):
        variant = classify_config({"projectName": "Demo", "techStack": ["Python"]})
        assert isinstance(variant, MinimalConfig)


class TestNormalizeConfig:
    """Tests for normalize_config."""

    def test_legacy_maps_description_to_context(self):
        config = normalize_config({
            "projectName": "Demo",
            "description": "A todo app",
            "requirements": ["Add tasks", "Share lists"],
            "techStack": ["React", "Node"],
        })
        assert config.context == "A todo app"
        assert config.interview_answers["mvpScope"] == "Key requirements:\n- Add tasks\n- Share lists"
        assert config.tech_stack == ["React", "Node"]

    def test_flexible_fields(self):
        config = normalize_config({
            "projectName": "Demo",
            "context": "ctx",
            "sourceDocuments": ["docs/brief.md"],
            "interviewAnswers": {"problem": "p"},
            "mode": "PRD",
            "hasFrontend": True,
            "teamContext": {"velocity": 15},
            "jiraProjectKey": "DEMO",
            "author": "Jane",
        })
        assert config.source_documents == ["docs/brief.md"]
        assert config.interview_answers == {"problem": "p"}
        assert config.generation_mode == GenerationMode.PRD
        assert config.has_frontend is True
        assert config.team.velocity == 15
        assert config.jira_project_key == "DEMO"
        assert config.author_name == "Jane"

    def test_description_fills_missing_context(self):
        config = normalize_config({"projectName": "Demo", "description": "desc", "mode": "ALL"})
        assert config.context == "desc"

    def test_legacy_fields_keep_mode_and_sources(self):
        config = normalize_config({
            "projectName": "Demo",
            "description": "desc",
            "requirements": ["a"],
            "mode": "PRD",
            "sourceDocuments": ["notes.md"],
        })
        assert config.mode == "PRD"
        assert config.source_documents == ["notes.md"]
        assert config.context == "desc"
        assert config.interview_answers["mvpScope"] == "Key requirements:\n- a"

    def test_has_frontend_requires_true(self):
        config = normalize_config({"projectName": "Demo", "context": "c", "hasFrontend": "yes"})
        assert config.has_frontend is False

    def test_defaults(self):
        config = normalize_config({"projectName": "Demo", "context": "c"})
        assert config.generation_mode == GenerationMode.ALL
        assert config.team_context is None
        assert config.team.velocity == 20
        assert config.author_name == "Document Architect"

    def test_is_idempotent(self):
        raw = {
            "projectName": "Demo",
            "description": "A todo app",
            "requirements": ["Add tasks"],
            "teamContext": {"velocity": 12},
        }
        once = normalize_config(raw)
        twice = normalize_config(once)
        again = normalize_config(once.to_dict())
        assert twice == once
        assert again == once

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            normalize_config(["not", "a", "mapping"])


class TestValidateConfig:
    """Tests for validate_config."""

    def test_valid(self):
        assert validate_config(normalize_config({"projectName": "Demo", "context": "c"})) == []

    def test_missing_project_name(self):
        errors = validate_config(normalize_config({"context": "c"}))
        assert "Missing required field: projectName" in errors

    def test_missing_context(self):
        errors = validate_config(normalize_config({"projectName": "Demo"}))
        assert len(errors) == 1
        assert errors[0].startswith("Configuration needs context")

    def test_blank_context_and_answers_count_as_missing(self):
        errors = validate_config(normalize_config({
            "projectName": "Demo",
            "context": "   ",
            "interviewAnswers": {"problem": "  "},
        }))
        assert any(e.startswith("Configuration needs context") for e in errors)

    def test_source_documents_satisfy_context(self):
        config = normalize_config({"projectName": "Demo", "sourceDocuments": ["brief.md"]})
        assert validate_config(config) == []

    def test_invalid_mode(self):
        errors = validate_config(normalize_config({"projectName": "Demo", "context": "c", "mode": "DOCS"}))
        assert errors == ["Invalid mode: DOCS. Valid modes: PRD, TDR, FRONTEND_TDR, STORIES, ALL"]

    def test_invalid_mode_alongside_legacy_fields(self):
        config = normalize_config({
            "projectName": "Demo",
            "description": "desc",
            "requirements": ["a"],
            "mode": "BOGUS",
        })
        errors = validate_config(config)
        assert len(errors) == 1
        assert errors[0].startswith("Invalid mode: BOGUS")

    def test_empty_mode_means_all(self):
        config = normalize_config({"projectName": "Demo", "context": "c", "mode": ""})
        assert validate_config(config) == []
        assert config.generation_mode == GenerationMode.ALL

    def test_invalid_source_document(self):
        config = ProjectConfig(project_name="Demo", context="c", source_documents=["ok.md", 42])
        assert validate_config(config) == ["Invalid sourceDocument path: 42"]

    def test_non_positive_velocity(self):
        config = normalize_config({"projectName": "Demo", "context": "c", "teamContext": {"velocity": 0}})
        assert validate_config(config) == ["teamContext.velocity must be a positive integer, got 0"]

    def test_collects_every_error(self):
        errors = validate_config(normalize_config({"mode": "NOPE"}))
        assert len(errors) == 3


class TestParseProjectConfig:
    """Tests for reading raw configuration text and files."""

    def test_parses_object(self):
        assert parse_project_config('{"projectName": "Demo"}') == {"projectName": "Demo"}

    def test_rejects_invalid_json(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_project_config("{not json")

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            parse_project_config("[1, 2]")

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "project.json"
        path.write_text(json.dumps({"projectName": "Demo", "context": "c"}), encoding="utf-8")
        assert load_project_config(path)["projectName"] == "Demo"

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "project.yaml"
        path.write_text("projectName: Demo\ncontext: c\n", encoding="utf-8")
        assert load_project_config(path) == {"projectName": "Demo", "context": "c"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_project_config(tmp_path / "missing.json")
