"""Command-line interface: serve the mock API and inspect its models."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import uvicorn

from mockgpt.app import create_app
from mockgpt.config import get_settings
from mockgpt.registry import ModelRegistry

app = typer.Typer(help="Mock OpenAI-compatible API server")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to MOCKGPT_HOST)."),
    port: Optional[int] = typer.Option(None, help="Port (defaults to MOCKGPT_PORT)."),
    config: Optional[Path] = typer.Option(None, help="Model registry YAML file."),
    log_level: Optional[str] = typer.Option(None, help="Log level."),
) -> None:
    """Run the HTTP server."""

    settings = get_settings()
    overrides: dict[str, object] = {}
    if config is not None:
        overrides["models_config_path"] = str(config)
    if log_level is not None:
        overrides["log_level"] = log_level

    application = create_app(settings_override=overrides)
    uvicorn.run(
        application,
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command()
def models(config: Optional[Path] = typer.Option(None, help="Model registry YAML file.")) -> None:
    """List configured models and their limits."""

    registry = ModelRegistry()
    path = config or Path(get_settings().models_config_path)
    if not path.exists():
        typer.echo(f"Model config not found: {path}", err=True)
        raise typer.Exit(1)
    registry.load_from_yaml(path)
    for item in registry.list_models():
        typer.echo(f"{item.kind}\t{item.id}\t{item.limit if item.limit is not None else '-'}")


if __name__ == "__main__":
    app()
