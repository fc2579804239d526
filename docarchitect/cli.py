#!/usr/bin/env python3
"""
Document Architect - CLI for generating planning documents from a project config.

Usage:
    docarchitect generate --config project.json [--output-dir docs] [--mock-llm] [--json]
    cat project.json | docarchitect generate
    docarchitect validate --config project.json
    docarchitect context --config project.json [--interactive] [--docs-dir notes]
    docarchitect chat [--config project.json]
    docarchitect plan docs/stories/demo-stories-2025-01-15.md [--velocity 20]
"""

import argparse
import json
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from . import __version__
from .context.builder import ContextOptions, build_interactive_context, build_prompt_context
from .context.documents import find_documents
from .context.prompts import ARCHITECT_SYSTEM_PROMPT
from .core.config import AppConfig, DependencyOrdering, load_config
from .core.exceptions import ConfigurationError, GenerationError
from .llm import BaseLLMClient, LLMMessage, MockLLMClient, client_from_settings
from .pipeline import DocumentPipeline, PipelineResult
from .project.normalizer import (
    load_project_config,
    normalize_config,
    parse_project_config,
    validate_config,
)
from .stories.extraction import parse_story_breakdown
from .stories.planner import plan_sprints
from .stories.rendering import render_dependency_graph, render_sprint_plan_table
from .utils.logger import setup_logging, get_logger

logger = get_logger(__name__)


# Canned document used by --mock-llm so a dry run still yields stories to plan
MOCK_DOCUMENT = """# Mock Document

## Epics

| Epic ID | Name | Priority | Effort |
|---------|------|----------|--------|
| EPIC-001 | Foundation | P0 | M |

### US-001: Project setup
**Epic:** EPIC-001
**Priority:** P0
**Story Points:** 3

### US-002: First feature
**Epic:** EPIC-001
**Priority:** P1
**Story Points:** 5
**Dependencies:** US-001
"""

EXIT_COMMANDS = ("exit", "quit", "/exit", "/quit")


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    DIM = "\033[2m"


def color(text: str, color_code: str) -> str:
    """Apply color to text."""
    return f"{color_code}{text}{Colors.RESET}"


def print_header(title: str) -> None:
    print()
    print(color(f"{'=' * 60}", Colors.CYAN))
    print(color(f"  {title}", Colors.BOLD + Colors.CYAN))
    print(color(f"{'=' * 60}", Colors.CYAN))


def print_success(message: str) -> None:
    print(color(f"[SUCCESS] {message}", Colors.GREEN))


def print_error(message: str) -> None:
    print(color(f"[ERROR] {message}", Colors.RED), file=sys.stderr)


def print_warning(message: str) -> None:
    print(color(f"[WARNING] {message}", Colors.YELLOW))


def print_info(message: str) -> None:
    print(color(f"[INFO] {message}", Colors.BLUE))


def print_step(message: str) -> None:
    print(color(f"  -> {message}", Colors.DIM))


def print_banner(message: str, code: str) -> None:
    print(color("=" * 60, code))
    print(color(f"  {message}", Colors.BOLD + code))
    print(color("=" * 60, code))


# =============================================================================
# Shared helpers
# =============================================================================

def read_raw_config(config_path: Optional[str]) -> Dict[str, Any]:
    """
    Read the project config from a file, or from stdin when no path is given.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the input is empty or not a JSON object
    """
    if config_path:
        return load_project_config(config_path)

    if sys.stdin.isatty():
        raise ValueError("No configuration provided. Use --config FILE or pipe JSON on stdin")

    text = sys.stdin.read()
    if not text.strip():
        raise ValueError("Empty configuration on stdin")
    return parse_project_config(text)


def add_docs_dir(raw_config: Dict[str, Any], docs_dir: Optional[str], recursive: bool = False) -> Dict[str, Any]:
    """
    Append the supported documents found in ``docs_dir`` to sourceDocuments.

    Raises:
        FileNotFoundError: If the directory doesn't exist
    """
    if not docs_dir:
        return raw_config
    if not Path(docs_dir).is_dir():
        raise FileNotFoundError(f"Documents directory not found: {docs_dir}")

    found = [str(path) for path in find_documents(docs_dir, recursive=recursive)]
    logger.info(f"Found {len(found)} source documents in {docs_dir}")
    if not found:
        return raw_config

    existing = raw_config.get("sourceDocuments")
    existing = list(existing) if isinstance(existing, list) else []
    return {**raw_config, "sourceDocuments": existing + [p for p in found if p not in existing]}


def load_settings(settings_path: Optional[str], output_dir: Optional[str] = None) -> AppConfig:
    settings = load_config(settings_path)
    if output_dir:
        settings.output.docs_dir = Path(output_dir)
    return settings


def configure_logging(settings: AppConfig, verbose: bool = False, quiet: bool = False) -> None:
    """Apply the settings' logging block; CLI flags override its level."""
    level = settings.logging.level
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    setup_logging(level=level, format_string=settings.logging.format, log_file=settings.logging.file)


def build_llm_client(settings: AppConfig, mock: bool = False) -> BaseLLMClient:
    if mock:
        logger.info("Using mock generation client")
        return MockLLMClient(default_response=MOCK_DOCUMENT)
    logger.info(f"Using {settings.llm.provider.value} generation client ({settings.llm.model})")
    return client_from_settings(settings.llm)


def print_config_errors(errors: List[str]) -> None:
    print_error("Invalid configuration:")
    for error in errors:
        print(f"    {color('-', Colors.RED)} {error}", file=sys.stderr)


def print_result(result: PipelineResult) -> None:
    """Print the run summary and sprint plan."""
    print()
    print_banner("Generation Complete!", Colors.GREEN)
    print()
    print(result.message)

    if result.sprint_plan and result.sprint_plan.entries:
        print()
        print(color("Sprint Plan:", Colors.BOLD))
        print(render_sprint_plan_table(result.sprint_plan))

    for warning in result.warnings:
        print_warning(warning)

    if result.stats.llm_calls:
        print()
        print_step(
            f"Generation calls: {result.stats.llm_calls}, "
            f"tokens: {result.stats.total_input_tokens} input, "
            f"{result.stats.total_output_tokens} output"
        )
    print()


# =============================================================================
# Commands
# =============================================================================

def generate_command(
    config_path: Optional[str] = None,
    settings_path: Optional[str] = None,
    output_dir: Optional[str] = None,
    mock_llm: bool = False,
    quiet: bool = False,
    verbose: bool = False,
    as_json: bool = False,
    docs_dir: Optional[str] = None,
    recursive: bool = False,
) -> int:
    """
    Run the document pipeline.

    Returns:
        Exit code (0 for success, 1 for errors)
    """
    interactive_output = not (quiet or as_json)

    try:
        raw_config = add_docs_dir(read_raw_config(config_path), docs_dir, recursive)
        settings = load_settings(settings_path, output_dir)
        configure_logging(settings, verbose=verbose, quiet=quiet or as_json)
        llm_client = build_llm_client(settings, mock=mock_llm)

        if interactive_output:
            print_header("Document Architect")
            print()

        pipeline = DocumentPipeline(
            llm_client=llm_client,
            settings=settings,
            progress=print_step if interactive_output else None,
        )
        result = pipeline.run(raw_config)

    except ConfigurationError as e:
        print_config_errors(e.errors)
        return 1
    except GenerationError as e:
        print_error(str(e))
        print_info("Documents generated before the failure were kept on disk")
        if verbose:
            traceback.print_exc()
        return 1
    except (FileNotFoundError, ValueError) as e:
        print_error(str(e))
        if verbose:
            traceback.print_exc()
        return 1
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        if verbose:
            traceback.print_exc()
        return 1

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif quiet:
        print(result.message)
    else:
        print_result(result)

    return 0


def validate_command(config_path: Optional[str] = None) -> int:
    """Normalize and validate a project config without generating anything."""
    print_header("Configuration Validator")
    print()

    try:
        raw_config = read_raw_config(config_path)
        config = normalize_config(raw_config)
    except (FileNotFoundError, ValueError, TypeError) as e:
        print_error(str(e))
        return 1

    errors = validate_config(config)
    if errors:
        print_config_errors(errors)
        print()
        print_banner("Validation Failed!", Colors.RED)
        return 1

    print_step(f"Project: {config.project_name}")
    print_step(f"Mode: {config.generation_mode.value}")
    print_step(f"Frontend: {'yes' if config.has_frontend else 'no'}")
    if config.jira_project_key:
        print_step(f"Jira project: {config.jira_project_key}")
    print_step(f"Team: {config.team.summary()}")
    print()
    print_success("Configuration is valid")
    return 0


def context_command(
    config_path: Optional[str] = None,
    settings_path: Optional[str] = None,
    interactive: bool = False,
    docs_dir: Optional[str] = None,
    recursive: bool = False,
) -> int:
    """Print the prompt context built for a project config."""
    try:
        settings = load_settings(settings_path)
        config = normalize_config(add_docs_dir(read_raw_config(config_path), docs_dir, recursive))
    except (FileNotFoundError, ValueError, TypeError) as e:
        print_error(str(e))
        return 1

    options = ContextOptions.from_settings(settings.context)

    if interactive:
        preface = build_interactive_context(config, options)
        if not preface:
            print_warning("Nothing to pre-load beyond the project name")
            return 0
        print(preface)
        return 0

    built = build_prompt_context(config, options)
    print(built.rendered_text)
    print()
    print_step(f"Sections: {', '.join(built.included_sections)}")
    print_step(f"Length: {built.total_length} characters{' (truncated)' if built.truncated else ''}")
    for error in built.document_errors:
        print_warning(f"Source document skipped: {error}")
    return 0


def chat_command(
    config_path: Optional[str] = None,
    settings_path: Optional[str] = None,
    mock_llm: bool = False,
) -> int:
    """
    Interactive session with the architect persona.

    When a config is given, its context is pre-loaded as the first message
    so the assistant skips questions that are already answered.
    """
    try:
        settings = load_settings(settings_path)
        llm_client = build_llm_client(settings, mock=mock_llm)
        preface = ""
        if config_path:
            config = normalize_config(load_project_config(config_path))
            preface = build_interactive_context(config, ContextOptions.from_settings(settings.context))
    except (FileNotFoundError, ValueError, TypeError) as e:
        print_error(str(e))
        return 1

    print_header("Document Architect - Interactive")
    print_info(f"Type one of {', '.join(EXIT_COMMANDS[:2])} to leave")

    messages: List[LLMMessage] = []
    pending = preface or "Let's plan a new project. What do you need to know?"

    while True:
        if pending:
            messages.append(LLMMessage(role="user", content=pending))
            response = llm_client.chat(messages, system_prompt=ARCHITECT_SYSTEM_PROMPT)

            if response.success:
                messages.append(LLMMessage(role="assistant", content=response.content))
                print()
                print(response.content)
            else:
                # Drop the unanswered turn so the user can retry it
                messages.pop()
                print_error(f"Generation failed: {response.error_message}")

        try:
            pending = input(color("\n> ", Colors.BOLD)).strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if pending.lower() in EXIT_COMMANDS:
            break

    return 0


def plan_command(
    stories_file: str,
    velocity: int = 20,
    ordering: str = DependencyOrdering.PAIRWISE.value,
    as_json: bool = False,
) -> int:
    """Plan sprints for an existing stories document."""
    path = Path(stories_file)
    if not path.exists():
        print_error(f"Stories file not found: {path}")
        return 1

    breakdown = parse_story_breakdown(path.read_text(encoding="utf-8"))
    if not breakdown.stories:
        print_error(f"No user stories found in {path}")
        return 1

    try:
        plan = plan_sprints(
            breakdown.stories,
            breakdown.epics,
            velocity=velocity,
            strategy=DependencyOrdering(ordering),
        )
    except ValueError as e:
        print_error(str(e))
        return 1

    if as_json:
        print(json.dumps({
            "stories": [story.to_dict() for story in plan.stories],
            "sprintPlan": plan.to_list(),
        }, indent=2))
        return 0

    print_header("Sprint Plan")
    print()
    print_step(f"Stories: {len(breakdown.stories)} ({breakdown.source})")
    print_step(f"Total points: {breakdown.total_points}, velocity: {velocity}")
    print()
    print(render_sprint_plan_table(plan))
    print()
    print(render_dependency_graph(plan.stories))
    return 0


# =============================================================================
# Entry point
# =============================================================================

def _add_docs_dir_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument("--docs-dir", "-d", help="Add every Markdown/text file in this directory as a source document")
    subparser.add_argument("--recursive", "-r", action="store_true", help="Also search subdirectories of --docs-dir")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docarchitect",
        description="Document Architect - Generate PRD, TDR and user stories from a project config",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate every document
  docarchitect generate --config project.json

  # Read the config from stdin and print a JSON result
  cat project.json | docarchitect generate --json

  # Dry run without calling a model
  docarchitect generate --config project.json --mock-llm --output-dir /tmp/docs

  # Check a config
  docarchitect validate --config project.json

  # Re-plan sprints for an existing stories document
  docarchitect plan docs/stories/demo-stories-2025-01-15.md --velocity 30
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Generate documents from a project config")
    gen_parser.add_argument("--config", "-c", help="Project config file (JSON or YAML; default: stdin)")
    gen_parser.add_argument("--settings", "-s", help="Settings file (YAML)")
    gen_parser.add_argument("--output-dir", "-o", help="Directory for generated documents (default: docs)")
    gen_parser.add_argument("--mock-llm", action="store_true", help="Use a mock model (no API calls)")
    gen_parser.add_argument("--quiet", "-q", action="store_true", help="Only print the final summary")
    gen_parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging and stack traces")
    gen_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    _add_docs_dir_arguments(gen_parser)

    # Validate command
    val_parser = subparsers.add_parser("validate", help="Validate a project config")
    val_parser.add_argument("--config", "-c", help="Project config file (default: stdin)")

    # Context command
    ctx_parser = subparsers.add_parser("context", help="Print the prompt context for a project config")
    ctx_parser.add_argument("--config", "-c", help="Project config file (default: stdin)")
    ctx_parser.add_argument("--settings", "-s", help="Settings file (YAML)")
    ctx_parser.add_argument(
        "--interactive",
        action="store_true",
        help="Print the pre-loaded preface used by chat sessions",
    )
    _add_docs_dir_arguments(ctx_parser)

    # Chat command
    chat_parser = subparsers.add_parser("chat", help="Interactive session with the architect")
    chat_parser.add_argument("--config", "-c", help="Project config to pre-load")
    chat_parser.add_argument("--settings", "-s", help="Settings file (YAML)")
    chat_parser.add_argument("--mock-llm", action="store_true", help="Use a mock model (no API calls)")

    # Plan command
    plan_parser = subparsers.add_parser("plan", help="Plan sprints for a stories document")
    plan_parser.add_argument("stories_file", help="Generated stories Markdown file")
    plan_parser.add_argument("--velocity", type=int, default=20, help="Story points per sprint (default: 20)")
    plan_parser.add_argument(
        "--ordering",
        choices=[o.value for o in DependencyOrdering],
        default=DependencyOrdering.PAIRWISE.value,
        help="Dependency ordering (default: pairwise)",
    )
    plan_parser.add_argument("--json", action="store_true", help="Print the plan as JSON")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Commands that load settings reconfigure this from their logging block
    setup_logging(level="DEBUG" if getattr(args, "verbose", False) else "WARNING")

    if args.command == "generate":
        return generate_command(
            config_path=args.config,
            settings_path=args.settings,
            output_dir=args.output_dir,
            mock_llm=args.mock_llm,
            quiet=args.quiet,
            verbose=args.verbose,
            as_json=args.json,
            docs_dir=args.docs_dir,
            recursive=args.recursive,
        )
    elif args.command == "validate":
        return validate_command(config_path=args.config)
    elif args.command == "context":
        return context_command(
            config_path=args.config,
            settings_path=args.settings,
            interactive=args.interactive,
            docs_dir=args.docs_dir,
            recursive=args.recursive,
        )
    elif args.command == "chat":
        return chat_command(
            config_path=args.config,
            settings_path=args.settings,
            mock_llm=args.mock_llm,
        )
    elif args.command == "plan":
        return plan_command(
            stories_file=args.stories_file,
            velocity=args.velocity,
            ordering=args.ordering,
            as_json=args.json,
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
