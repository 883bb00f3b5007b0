from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from functools import partial
from typing import Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich_argparse import RawTextRichHelpFormatter
from ai_cli_runner import (
    FailureKind,
    InvocationOutcome,
    InvocationRequest,
    InvocationSettings,
    ProcessEngine,
    Success,
    run_model,
)
from ai_cli_runner.providers import MODELS, capabilities_for_provider, resolve_binary

_CONSOLE = Console(no_color=False)
_ERR_CONSOLE = Console(stderr=True)

_EXIT_CODES = {
    FailureKind.EXECUTION_FAILED: 1,
    FailureKind.EMPTY_OUTPUT: 1,
    FailureKind.TIMED_OUT: 124,
    FailureKind.BINARY_NOT_FOUND: 127,
}

_HINTS = {
    FailureKind.BINARY_NOT_FOUND: "Install the CLI or add its directory to search_roots.",
    FailureKind.TIMED_OUT: "Retry, or raise --timeout-seconds.",
}


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="acr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _ERR_CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for ai-cli-runner.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="acr",
        description=(
            "ai-cli-runner CLI\n"
            "Run locally installed AI command-line tools with a deadline\n"
            "and a classified outcome."
        ),
        epilog=(
            "Quick Examples:\n"
            "  acr models\n"
            "  acr run --model gemini-3-flash \"Write a haiku\"\n"
            "  cat prompt.txt | acr run --model opencode/big-pickle -\n"
            "  acr exec --timeout-seconds 5 /usr/bin/printf hello"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--settings-file",
        help="TOML settings file overriding the bundled defaults.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log process lifecycle events to stderr.",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    sub.add_parser(
        "models",
        help="List known models and whether their CLI is installed.",
        description="Show every known model, its provider, and the resolved binary path.",
        formatter_class=_HELP_FORMATTER,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Send a prompt to a model.",
        description=(
            "Send a prompt to a model through its provider CLI.\n"
            "Use '-' as the prompt to read it from stdin."
        ),
        epilog=(
            "Examples:\n"
            "  acr run --model gemini-3-pro \"Summarize this job posting\"\n"
            "  acr run --model mistral-vibe - < prompt.txt"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("--model", required=True, help="Model identifier (see `acr models`).")
    run_cmd.add_argument(
        "--timeout-seconds",
        type=float,
        help="Deadline before the CLI is terminated (default: from settings).",
    )
    run_cmd.add_argument("prompt")

    exec_cmd = sub.add_parser(
        "exec",
        help="Run any binary through the invocation engine.",
        description=(
            "Run a binary by absolute path and report its classified outcome.\n"
            "Options for acr go before EXECUTABLE; everything after it is passed\n"
            "to the binary unchanged, including arguments that start with '-'."
        ),
        epilog=(
            "Examples:\n"
            "  acr exec --input hello /usr/bin/cat -n\n"
            "  acr exec --timeout-seconds 5 /usr/bin/printf hello"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    exec_cmd.add_argument(
        "--input",
        help="Text written to the binary's stdin (default: stdin is closed).",
    )
    exec_cmd.add_argument(
        "--timeout-seconds",
        type=float,
        help="Deadline before the binary is terminated (default: from settings).",
    )
    exec_cmd.add_argument("executable", help="Absolute path of the binary to run.")
    exec_cmd.add_argument(
        "arguments",
        nargs=argparse.REMAINDER,
        help="Arguments passed verbatim to the binary.",
    )

    return parser


def _load_settings(args: argparse.Namespace) -> InvocationSettings:
    """Load settings from --settings-file or the bundled defaults.

    Example:
        ```python
        settings = _load_settings(args)
        ```
    """
    if args.settings_file:
        settings = InvocationSettings.from_file(args.settings_file)
    else:
        settings = InvocationSettings()
    timeout = getattr(args, "timeout_seconds", None)
    if timeout is not None:
        settings = replace(settings, timeout_seconds=timeout)
    return settings


def build_engine(settings: InvocationSettings) -> ProcessEngine:
    """Create the engine used by CLI commands.

    Example:
        ```python
        engine = build_engine(InvocationSettings())
        ```
    """
    return ProcessEngine(settings=settings)


def _configure_logging(verbose: bool) -> None:
    """Route library logs through Rich when --verbose is set.

    Example:
        ```python
        _configure_logging(True)
        ```
    """
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        handlers=[RichHandler(console=_ERR_CONSOLE, show_path=False)],
    )


def _print_models(settings: InvocationSettings) -> None:
    """Render known models in a rich table.

    Example:
        ```python
        _print_models(InvocationSettings())
        ```
    """
    table = Table(title="Models")
    table.add_column("Model", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Provider")
    table.add_column("Binary")
    table.add_column("Installed")
    for model in MODELS:
        caps = capabilities_for_provider(model.provider)
        binary = resolve_binary(caps.binary_names, settings.search_roots)
        installed = _is_installed(binary)
        table.add_row(
            model.identifier,
            model.display_name,
            model.provider,
            binary,
            "[green]yes[/green]" if installed else "[red]no[/red]",
        )
    _CONSOLE.print(table)


def _is_installed(path: str) -> bool:
    """Return whether a resolved binary path exists.

    Example:
        ```python
        ok = _is_installed("/opt/homebrew/bin/gemini")
        ```
    """
    return os.path.isfile(path)


def _report(outcome: InvocationOutcome) -> int:
    """Print an outcome and return the process exit code.

    Example:
        ```python
        code = _report(Success("hello"))
        ```
    """
    if isinstance(outcome, Success):
        _CONSOLE.print(outcome.output, markup=False, highlight=False)
        return 0
    body = outcome.message
    hint = _HINTS.get(outcome.kind)
    if hint:
        body = f"{body}\n{hint}"
    _ERR_CONSOLE.print(
        Panel.fit(Text(body), title=Text(outcome.kind.value), border_style="red"),
    )
    return _EXIT_CODES[outcome.kind]


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `acr` CLI command handler.

    Example:
        ```python
        code = main(["models"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(args.verbose)
    try:
        settings = _load_settings(args)
    except ValueError as exc:
        parser.error(str(exc))

    if args.command == "models":
        _print_models(settings)
        return 0
    if args.command == "run":
        prompt = sys.stdin.read() if args.prompt == "-" else args.prompt
        try:
            outcome = run_model(prompt, args.model, engine=build_engine(settings), settings=settings)
        except ValueError as exc:
            parser.error(str(exc))
        return _report(outcome)
    if args.command == "exec":
        try:
            request = InvocationRequest(
                executable_path=args.executable,
                arguments=args.arguments,
                input=args.input,
                timeout_seconds=settings.timeout_seconds,
            )
        except ValueError as exc:
            parser.error(str(exc))
        return _report(build_engine(settings).execute(request))

    parser.error("Unhandled command")
    return 2

