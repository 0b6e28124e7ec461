from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import List, Optional
import json
import logging

import typer

from riprap.analysis.result import AnalysisResult, requires_attention, result_payload
from riprap.analysis.session import analyze as run_analysis
from riprap.config import EngineConfig, engine_config
from riprap.exceptions import PayloadError, UnknownFrontEnd
from riprap.ingest.adapter_contract import IngestBundle
from riprap.ingest.registry import FRONT_ENDS

app = typer.Typer(add_completion=False, help="Async-migration dependency analysis.")

_STDOUT_ALIAS = "-"
_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class _EchoHandler(logging.Handler):
    """Routes engine log records to stderr through typer."""

    def emit(self, record: logging.LogRecord) -> None:
        typer.echo(self.format(record), err=True)


def _configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"unknown log level {level!r}", param_hint="--log-level")
    package_logger = logging.getLogger("riprap")
    if not any(isinstance(h, _EchoHandler) for h in package_logger.handlers):
        handler = _EchoHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        package_logger.addHandler(handler)
    package_logger.setLevel(numeric)


def _load_bundle(paths: list[Path], language: str | None) -> IngestBundle:
    try:
        front_end = FRONT_ENDS.select(paths, language)
    except UnknownFrontEnd as exc:
        raise typer.BadParameter(str(exc), param_hint="--language") from exc
    try:
        return front_end.load(paths)
    except PayloadError as exc:
        raise typer.BadParameter(str(exc), param_hint="PATHS") from exc


def _resolve_config(config: Path | None, workers: int | None) -> EngineConfig:
    if config is not None and not config.is_file():
        raise typer.BadParameter(f"config file not found: {config}", param_hint="--config")
    resolved = engine_config(config_path=config)
    if workers is not None:
        resolved = replace(resolved, workers=workers)
    return resolved


def _write_text_to_target(target: str, text: str) -> None:
    if target == _STDOUT_ALIAS:
        typer.echo(text, nl=False)
        return
    path = Path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def run(
    paths: list[Path],
    *,
    roots: list[str],
    config: Path | None,
    workers: int | None,
    language: str | None,
) -> AnalysisResult:
    bundle = _load_bundle(paths, language)
    engine = _resolve_config(config, workers)
    return run_analysis(bundle.units, roots or list(bundle.roots), config=engine)


@app.command()
def analyze(
    paths: List[Path] = typer.Argument(..., help="Front-end payload files."),
    root: List[str] = typer.Option(
        [], "--root", help="Changed function to analyze (overrides payload roots)."
    ),
    config: Optional[Path] = typer.Option(None, "--config"),
    output: str = typer.Option(_STDOUT_ALIAS, "--output", help="Result JSON path or '-'."),
    workers: Optional[int] = typer.Option(None, "--workers", min=1),
    language: Optional[str] = typer.Option(None, "--language"),
    fail_on_high: bool = typer.Option(
        False,
        "--fail-on-high/--no-fail-on-high",
        help="Exit 1 when any decision reaches the High priority tier.",
    ),
    log_level: str = typer.Option("WARNING", "--log-level"),
) -> None:
    """Analyze changed functions and emit the JSON result."""
    _configure_logging(log_level)
    result = run(list(paths), roots=list(root), config=config, workers=workers, language=language)
    text = json.dumps(result_payload(result), indent=2) + "\n"
    _write_text_to_target(output, text)
    if fail_on_high and requires_attention(result):
        raise typer.Exit(code=1)


@app.command()
def summary(
    paths: List[Path] = typer.Argument(..., help="Front-end payload files."),
    root: List[str] = typer.Option([], "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    language: Optional[str] = typer.Option(None, "--language"),
    log_level: str = typer.Option("WARNING", "--log-level"),
) -> None:
    """Print one line per root: category, tier and score."""
    _configure_logging(log_level)
    result = run(list(paths), roots=list(root), config=config, workers=None, language=language)
    if not result.roots:
        typer.echo("No roots analyzed.")
    for report in result.roots:
        function = report.function
        typer.echo(
            f"{function.qualname}: {function.decision.category}/"
            f"{function.priority.tier} {function.priority.score:g}"
        )
    for failure in result.failures:
        typer.echo(f"{failure.kind}: {failure.subject}: {failure.reason}")
