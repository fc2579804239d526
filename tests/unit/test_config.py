"""Unit tests for settings, exceptions and pipeline state."""

from datetime import date
from pathlib import Path

import pytest
from docarchitect.core.config import (
    AppConfig,
    LLMSettings,
    ContextSettings,
    OutputSettings,
    PlanningSettings,
    LLMProvider,
    DependencyOrdering,
    load_config,
)
from docarchitect.core.exceptions import ConfigurationError, GenerationError, DocArchitectError
from docarchitect.core.state import (
    DocumentKind,
    GeneratedDocument,
    PipelineState,
    PipelineStats,
)
from docarchitect.context.builder import BuiltContext
from docarchitect.llm.base import LLMResponse
from docarchitect.project.models import ProjectConfig


class TestLLMSettings:
    """Tests for LLMSettings."""

    def test_provider_from_string(self):
        settings = LLMSettings(provider="OLLAMA")
        assert settings.provider == LLMProvider.OLLAMA

    def test_provider_from_environment(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "mock")
        assert LLMSettings().provider == LLMProvider.MOCK

    def test_default_model_per_provider(self, monkeypatch):
        monkeypatch.delenv("OLLAMA_MODEL", raising=False)
        monkeypatch.delenv("BEDROCK_MODEL", raising=False)
        assert LLMSettings(provider="mock").model == "mock-model"
        assert LLMSettings(provider="ollama").model == "qwen3-coder:480b-cloud"
        assert LLMSettings(provider="bedrock").model.startswith("anthropic.")

    def test_explicit_model_wins(self, monkeypatch):
        monkeypatch.setenv("BEDROCK_MODEL", "env-model")
        assert LLMSettings(provider="bedrock", model="explicit").model == "explicit"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            LLMSettings(provider="carrier-pigeon")


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig(llm=LLMSettings(provider="mock"))
        assert config.context.max_length == 12000
        assert config.context.max_per_document == 4000
        assert config.output.docs_dir == Path("docs")
        assert config.output.stories_subdir == "stories"
        assert config.planning.dependency_ordering == DependencyOrdering.PAIRWISE

    def test_from_dict_partial(self):
        config = AppConfig.from_dict({
            "llm": {"provider": "mock"},
            "output": {"docs_dir": "out"},
            "planning": {"dependency_ordering": "topological"},
        })
        assert config.llm.provider == LLMProvider.MOCK
        assert config.output.docs_dir == Path("out")
        assert config.planning.dependency_ordering == DependencyOrdering.TOPOLOGICAL
        assert config.context == ContextSettings()

    def test_yaml_round_trip(self, tmp_path):
        config = AppConfig(
            llm=LLMSettings(provider="mock", temperature=0.2),
            output=OutputSettings(docs_dir=tmp_path / "docs"),
            planning=PlanningSettings(dependency_ordering="topological"),
        )
        path = tmp_path / "settings.yaml"
        config.save_yaml(path)

        loaded = AppConfig.from_yaml(path)
        assert loaded.llm.provider == LLMProvider.MOCK
        assert loaded.llm.temperature == 0.2
        assert loaded.output.docs_dir == tmp_path / "docs"
        assert loaded.planning.dependency_ordering == DependencyOrdering.TOPOLOGICAL

    def test_to_dict_omits_api_key(self):
        config = AppConfig(llm=LLMSettings(provider="ollama", api_key="secret"))
        assert "api_key" not in config.to_dict()["llm"]

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_not_mapping(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            AppConfig.from_yaml(path)

    def test_load_config_explicit_path(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("llm:\n  provider: mock\ncontext:\n  max_length: 500\n", encoding="utf-8")
        config = load_config(path)
        assert config.context.max_length == 500

    def test_load_config_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("LLM_PROVIDER", "mock")
        config = load_config()
        assert config.llm.provider == LLMProvider.MOCK


class TestExceptions:
    """Tests for error types."""

    def test_configuration_error_carries_all_messages(self):
        error = ConfigurationError(["first", "second"])
        assert error.errors == ["first", "second"]
        assert "first" in str(error) and "second" in str(error)
        assert isinstance(error, ValueError)
        assert isinstance(error, DocArchitectError)

    def test_generation_error(self):
        error = GenerationError("TDR", "throttled", "model-x")
        assert error.stage == "TDR"
        assert error.model_id == "model-x"
        assert str(error) == "TDR generation failed: throttled"


class TestPipelineState:
    """Tests for the immutable pipeline state."""

    @pytest.fixture
    def state(self):
        return PipelineState(
            config=ProjectConfig(project_name="Demo", context="c"),
            run_date=date(2025, 1, 15),
            context=BuiltContext(rendered_text="## Project: Demo"),
        )

    @pytest.fixture
    def prd(self, tmp_path):
        return GeneratedDocument(kind=DocumentKind.PRD, content="# PRD", path=tmp_path / "prd.md")

    def test_with_document_returns_new_state(self, state, prd):
        updated = state.with_document(DocumentKind.PRD, prd)
        assert updated is not state
        assert state.document(DocumentKind.PRD) is None
        assert updated.content(DocumentKind.PRD) == "# PRD"

    def test_content_of_missing_document_is_empty(self, state):
        assert state.content(DocumentKind.TDR) == ""

    def test_skipped_document_recorded_as_none(self, state):
        updated = state.with_document(DocumentKind.FRONTEND_TDR, None)
        assert DocumentKind.FRONTEND_TDR in updated.documents
        assert updated.document(DocumentKind.FRONTEND_TDR) is None

    def test_state_is_frozen(self, state):
        with pytest.raises(AttributeError):
            state.warnings = ("changed",)

    def test_with_export_and_warning(self, state, tmp_path):
        updated = state.with_export("jira", tmp_path / "x.csv").with_warning("careful")
        assert updated.exports["jira"] == tmp_path / "x.csv"
        assert updated.warnings == ("careful",)
        assert state.exports == {}

    def test_with_usage_accumulates(self, state):
        response = LLMResponse(content="x", success=True, input_tokens=10, output_tokens=5)
        updated = state.with_usage(response).with_usage(response)
        assert updated.stats == PipelineStats(llm_calls=2, total_input_tokens=20, total_output_tokens=10)

    def test_document_kind_keys(self):
        assert [kind.result_key for kind in DocumentKind] == ["prd", "tdr", "frontendTdr", "stories"]
        assert DocumentKind.FRONTEND_TDR.suffix == "frontend-tdr"
        assert DocumentKind.FRONTEND_TDR.label == "Frontend TDR"
