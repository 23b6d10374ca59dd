"""Command line interface for the model registry."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from docintel_registry.config import load_config
from docintel_registry.errors import NotFoundError, PersistenceError
from docintel_registry.registry import ModelRegistry, get_registry

app = typer.Typer(help="Track versioned document-processing model IDs")


def _open_registry(ctx: typer.Context) -> ModelRegistry:
    try:
        return get_registry(ctx.obj["registry_path"])
    except PersistenceError as exc:
        _fail(exc)


def _fail(exc: Exception) -> None:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    registry: Optional[Path] = typer.Option(
        None, "--registry", help="Path to the registry JSON file"
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path to a YAML configuration file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """docintel-registry CLI entry point."""
    try:
        settings = load_config(str(config) if config else None)
    except ValidationError as exc:
        _fail(exc)
    level = logging.DEBUG if verbose else settings.log_level
    logging.basicConfig(level=level)
    ctx.obj = {"registry_path": registry or settings.registry_path}


@app.command("list-models")
def list_models(ctx: typer.Context) -> None:
    """
    Show every registered model with its version history.

    The version whose model ID is currently active is marked "(ACTIVE)".

    Example:
        docintel-registry list-models
    """
    typer.echo(_open_registry(ctx).list_models())


@app.command("get-model")
def get_model(
    ctx: typer.Context,
    model_name: str,
    version: Optional[str] = typer.Argument(None, help="Version label, e.g. 1.0"),
) -> None:
    """
    Print the model ID for a model name.

    Without a version the active model ID is printed.

    Example:
        docintel-registry get-model invoice-extractor
        docintel-registry get-model invoice-extractor 1.0
    """
    registry = _open_registry(ctx)
    try:
        model_id = registry.get_model_id(model_name, version)
    except NotFoundError as exc:
        _fail(exc)
    typer.echo(f"Model ID: {model_id}")


@app.command("set-active")
def set_active(ctx: typer.Context, model_name: str, version: str) -> None:
    """
    Make a previously registered version the active one.

    Example:
        docintel-registry set-active invoice-extractor 1.0
    """
    registry = _open_registry(ctx)
    try:
        entry = registry.set_active_version(model_name, version)
    except (NotFoundError, PersistenceError) as exc:
        _fail(exc)
    typer.echo(
        f"✓ Set active version of '{model_name}' to {entry.version} "
        f"(Model ID: {entry.model_id})"
    )


@app.command("register")
def register(
    ctx: typer.Context,
    model_name: str,
    model_id: str,
    description: str = typer.Option("", help="Free-text note for this version"),
) -> None:
    """
    Register a model ID as the newest version of a model name.

    The new version becomes active. Versions are numbered 1.0, 2.0, ...

    Example:
        docintel-registry register invoice-extractor model-abc123
        docintel-registry register invoice-extractor model-def456 --description "retrained"
    """
    registry = _open_registry(ctx)
    try:
        entry = registry.register(model_name, model_id, description=description)
    except (ValueError, PersistenceError) as exc:
        _fail(exc)
    typer.echo(
        f"✓ Model '{model_name}' version {entry.version} registered with ID: {model_id}"
    )


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
