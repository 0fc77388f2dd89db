"""Typer CLI entrypoint for profile evaluation."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, NoReturn, Optional

import pydantic
import typer
import yaml

from .container import EvaluationContainer, create_container
from .errors import ValidationError
from .logging import configure_logging
from .pdf_utils import extract_document_text
from .schemas.config import load_config_file

app = typer.Typer(help="Profile evaluation and candidate search CLI.")


class OutputWriter:
    """Emit JSON payloads to a file or stdout."""

    def write(self, payload: dict | list, path: Path | None = None) -> None:
        text = json.dumps(payload, ensure_ascii=False, indent=2)
        if path is None:
            typer.echo(text)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        typer.echo(f"Results saved to {path}.")


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
) -> None:
    """Load configuration and logging shared by every command."""
    configure_logging(log_level)
    settings = None
    if config:
        try:
            settings = load_config_file(config)
        except (pydantic.ValidationError, yaml.YAMLError) as exc:
            raise typer.BadParameter(f"Invalid config file: {exc}", param_hint="config") from exc
    ctx.obj = {"settings": settings, "writer": OutputWriter()}


def _container(ctx: typer.Context) -> EvaluationContainer:
    return create_container(settings=ctx.obj["settings"])


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{label} is not valid JSON: {exc}") from exc


def _parse_weights(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"weights must be a JSON object: {exc}", param_hint="weights") from exc


def _fail(exc: ValidationError) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=2)


@app.command()
def evaluate(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, help="Profile name."),
    document: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="CV document (PDF or text)."),
    profile_id: Optional[str] = typer.Option(None, help="External profile identifier."),
    github_username: Optional[str] = typer.Option(None, help="Known GitHub login; skips the account search."),
    weights: Optional[str] = typer.Option(None, help="Weight vector as a JSON object."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Output JSON path."),
) -> None:
    """Evaluate a single profile across all dimensions."""
    request: dict[str, Any] = {"name": name or ""}
    if document:
        request["documentText"] = extract_document_text(document)
    if profile_id:
        request["externalProfileId"] = profile_id
    if github_username:
        request["githubUsername"] = github_username
    parsed_weights = _parse_weights(weights)
    if parsed_weights is not None:
        request["weights"] = parsed_weights

    service = _container(ctx).service()
    try:
        result = asyncio.run(service.evaluate(request))
    except ValidationError as exc:
        _fail(exc)
    ctx.obj["writer"].write(result, output)


@app.command()
def search(
    ctx: typer.Context,
    filters: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="Filter criteria JSON path."),
    max_profiles: int = typer.Option(10, min=1, help="Stop after this many passing candidates."),
    max_search_results: int = typer.Option(30, min=1, help="Upper bound on discovered candidates."),
    method: str = typer.Option("parallel", help="sequential or parallel."),
    concurrency: Optional[int] = typer.Option(None, min=1, help="Candidates processed at once in parallel mode."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Output JSON path."),
) -> None:
    """Discover candidates and keep those passing the filters."""
    request: dict[str, Any] = {
        "filters": _read_json(filters, "filters") if filters else {},
        "maxProfiles": max_profiles,
        "maxSearchResults": max_search_results,
        "processingMethod": method,
    }
    if concurrency is not None:
        request["concurrency"] = concurrency

    service = _container(ctx).service()
    try:
        result = asyncio.run(service.search(request))
    except ValidationError as exc:
        _fail(exc)
    ctx.obj["writer"].write(result, output)
    if not result["success"]:
        raise typer.Exit(code=1)


@app.command()
def score(
    ctx: typer.Context,
    data: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Structured dimension data JSON path."),
    weights: Optional[str] = typer.Option(None, help="Weight vector as a JSON object."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Output JSON path."),
) -> None:
    """Score structured dimension data without extraction."""
    payload = _read_json(data, "data")
    if isinstance(payload, dict) and "parsing" in payload:
        payload = payload["parsing"]
    service = _container(ctx).service()
    try:
        result = service.score(payload, _parse_weights(weights))
    except ValidationError as exc:
        _fail(exc)
    ctx.obj["writer"].write(result, output)


@app.command("search-query")
def search_query(
    ctx: typer.Context,
    filters: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="Filter criteria JSON path."),
) -> None:
    """Preview the discovery query built from the filters."""
    service = _container(ctx).service()
    try:
        result = service.search_query(_read_json(filters, "filters") if filters else {})
    except ValidationError as exc:
        _fail(exc)
    ctx.obj["writer"].write(result)


@app.command()
def weights(ctx: typer.Context) -> None:
    """Show the default weight vector."""
    ctx.obj["writer"].write(_container(ctx).service().weights())


@app.command("cache-stats")
def cache_stats(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, help="Restrict to one dimension."),
) -> None:
    """Show cache entry counts."""
    stats = _container(ctx).cache().stats(category)
    ctx.obj["writer"].write(stats.to_payload())


@app.command("cache-clear")
def cache_clear(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, help="Restrict to one dimension."),
) -> None:
    """Delete cache entries."""
    removed = _container(ctx).cache().clear(category)
    ctx.obj["writer"].write({"removed": removed})


@app.command("cache-sweep")
def cache_sweep(ctx: typer.Context) -> None:
    """Delete expired and unreadable cache entries."""
    removed = _container(ctx).cache().sweep_expired()
    ctx.obj["writer"].write({"removed": removed})


def main() -> None:
    app()
