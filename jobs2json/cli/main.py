from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from jobs2json.core.config import AppConfig, resolve_config
from jobs2json.core.errors import PoolStartupError, SchemaError
from jobs2json.infra.logging import init_logging
from jobs2json.services.batch import build_orchestrator, build_schema

app = typer.Typer(help="Jobs2Json CLI: serve, scrape, schema")


def _load(config: Optional[Path], overrides: Dict[str, Any]) -> AppConfig:
    try:
        return resolve_config(config, overrides)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


def _read_url_file(path: Path) -> List[str]:
    text = path.read_text(encoding="utf-8")
    if text.lstrip().startswith("["):
        data = json.loads(text)
        return [str(u) for u in data if isinstance(u, str)]
    return [ln.strip() for ln in text.splitlines() if ln.strip() and not ln.strip().startswith("#")]


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port", min=1, max=65535),
    pool_size: Optional[int] = typer.Option(None, "--pool-size", min=1, help="Concurrent fetches per batch"),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0, help="Transport timeout in seconds, 0 disables"),
    schema: Optional[Path] = typer.Option(None, "--schema", exists=True, dir_okay=False, readable=True),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, readable=True),
) -> None:
    """Serve POST /get_jobs over HTTP."""
    import uvicorn

    from jobs2json.server.app import create_app

    init_logging()
    cfg = _load(
        config,
        {"host": host, "port": port, "pool_size": pool_size, "timeout": timeout, "schema_file": schema},
    )
    try:
        api = create_app(config=cfg)
    except ValueError as e:
        # SchemaError, or a parser bs4 does not have
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    uvicorn.run(api, host=cfg.host, port=cfg.port)


@app.command()
def scrape(
    urls: Optional[List[str]] = typer.Argument(None, help="URLs to fetch"),
    input_file: Optional[Path] = typer.Option(
        None, "--input", "-i", exists=True, dir_okay=False, readable=True, help="JSON array or one URL per line"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON array here"),
    pool_size: Optional[int] = typer.Option(None, "--pool-size", min=1),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0),
    schema: Optional[Path] = typer.Option(None, "--schema", exists=True, dir_okay=False, readable=True),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, readable=True),
) -> None:
    """Run one batch locally and print the extracted records as JSON."""
    init_logging()
    batch = list(urls or [])
    if input_file is not None:
        batch.extend(_read_url_file(input_file))
    if not batch:
        typer.secho("No URLs given; pass them as arguments or with --input.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    cfg = _load(config, {"pool_size": pool_size, "timeout": timeout, "schema_file": schema})
    try:
        orchestrator = build_orchestrator(cfg)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    try:
        result = orchestrator.run(batch)
    except PoolStartupError as e:
        typer.secho(f"Batch failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    payload = json.dumps([r.to_dict() for r in result.records], ensure_ascii=False, indent=2)
    if output is not None:
        output.write_text(payload + "\n", encoding="utf-8")
        typer.echo(f"Saved: {output}", err=True)
    else:
        typer.echo(payload)
    typer.echo(f"Scrape done: success {result.success}, failed {result.failed}", err=True)
    for u in result.failed_urls:
        typer.echo(f"  failed: {u}", err=True)


@app.command("schema")
def show_schema(
    schema: Optional[Path] = typer.Option(None, "--schema", exists=True, dir_okay=False, readable=True),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, readable=True),
) -> None:
    """Print the effective extraction schema."""
    cfg = _load(config, {"schema_file": schema})
    try:
        effective = build_schema(cfg)
    except SchemaError as e:
        typer.secho(f"Invalid schema: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    typer.echo(json.dumps(effective.as_dict(), ensure_ascii=False, indent=2))


def main() -> None:  # console_scripts entrypoint
    app()


if __name__ == "__main__":
    main()
