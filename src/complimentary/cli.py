"""Typer-based CLI for generating, curating, and configuring compliments and haikus."""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

import typer
from pydantic import ValidationError

from complimentary.errors import InvalidIntentError
from complimentary.generator import (
    DEFAULT_GEMINI_KEY_FILE,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_KEY_FILE,
    DEFAULT_OPENAI_MODEL,
    GEMINI_KEY_ENV,
    OPENAI_KEY_ENV,
    GeminiGenerator,
    OpenAIGenerator,
    Transport,
    resolve_api_key,
)
from complimentary.models import ArtifactRecord, ArtifactType, GenerationIntent, GenerationOutcome, Style
from complimentary.pipeline import run_generation
from complimentary.store import Store

app = typer.Typer(add_completion=False, help="complimentary: personalized compliments and haikus")

DEFAULT_DB_PATH = Path(".complimentary/complimentary.db")


class Provider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"


def _echo_step(step: int, total: int, message: str) -> None:
    """Print a normalized progress step line."""
    typer.echo(f"[{step}/{total}] {message}")


def _open_store(db_path: Path) -> Store:
    store = Store(db_path)
    store.init_db()
    return store


def _build_transport(provider: Provider, model_name: str | None) -> Transport:
    if provider is Provider.OPENAI:
        return OpenAIGenerator(
            model_name=model_name or DEFAULT_OPENAI_MODEL,
            api_key=resolve_api_key(OPENAI_KEY_ENV, DEFAULT_OPENAI_KEY_FILE),
        )
    return GeminiGenerator(
        model_name=model_name or DEFAULT_GEMINI_MODEL,
        api_key=resolve_api_key(GEMINI_KEY_ENV, DEFAULT_GEMINI_KEY_FILE),
    )


def _build_record(intent: GenerationIntent, outcome: GenerationOutcome, model_name: str) -> ArtifactRecord:
    artifact = outcome.artifact
    return ArtifactRecord(
        artifact_id=uuid.uuid4().hex[:12],
        created_at=datetime.now(timezone.utc),
        artifact_type=intent.artifact_type,
        style=intent.style,
        specificity=intent.specificity,
        relationship=intent.relationship,
        context_hints=list(intent.context_hints),
        text=artifact.text,
        sparkle_score=artifact.sparkle_score,
        tags=list(artifact.tags),
        provenance=artifact.provenance,
        model_name=model_name,
        prompt_text=outcome.request.user_instructions,
        raw_response=outcome.raw_response,
        error_kind=outcome.error_kind,
    )


def _echo_record(record: ArtifactRecord) -> None:
    star = "*" if record.is_favorite else " "
    first_line = record.text.splitlines()[0] if record.text else ""
    typer.echo(
        f"{star} {record.artifact_id}  {record.artifact_type.value:<10} {record.style.value:<12} "
        f"sparkle={record.sparkle_score} {first_line}"
    )


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


@app.command("init-db")
def init_db(
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
) -> None:
    """Initialize the SQLite database schema."""
    _open_store(db_path)
    typer.echo(f"DB initialized: {db_path}")


@app.command("generate")
def generate(
    artifact_type: ArtifactType = typer.Argument(..., help="compliment or haiku"),
    relationship: str = typer.Option(..., "--relationship", "-r", help="Who it is for, e.g. coworker"),
    context: list[str] = typer.Option(..., "--context", "-c", help="Context hint (repeat up to 8 times)"),
    style: Style | None = typer.Option(None, help="Tone style; defaults to the saved preference"),
    specificity: int | None = typer.Option(None, help="1 generic -> 5 highly tailored"),
    name: str | None = typer.Option(None, help="Optional name of the recipient"),
    provider: Provider = typer.Option(Provider.GEMINI, help="Upstream model provider"),
    model_name: str | None = typer.Option(None, help="Model name override"),
    local_only: bool = typer.Option(False, help="Skip the model and use the local fallback pool"),
    seed: int | None = typer.Option(None, help="Random seed for fallback selection"),
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
    no_db: bool = typer.Option(False, "--no-db", help="Do not record the result in history"),
) -> None:
    """Generate one compliment or haiku and record it in history."""
    total_steps = 3 if no_db else 4

    _echo_step(1, total_steps, "Loading preferences")
    store = None if no_db else _open_store(db_path)
    preferences = store.get_preferences() if store else None
    privacy_no_name = bool(preferences and preferences.privacy_no_name)
    if style is None:
        style = preferences.default_style if preferences else Style.CLASSIC
    if specificity is None:
        specificity = preferences.default_specificity if preferences else 3

    try:
        intent = GenerationIntent(
            artifact_type=artifact_type,
            style=style,
            specificity=specificity,
            relationship=relationship,
            context_hints=tuple(context),
            name=None if privacy_no_name else name,
        )
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    transport = None if local_only else _build_transport(provider, model_name)
    effective_model = "local" if transport is None else transport.model_name

    _echo_step(2, total_steps, f"Generating {artifact_type.value} with {effective_model}")
    rng = random.Random(seed) if seed is not None else None
    try:
        outcome = run_generation(intent, transport, rng=rng)
    except InvalidIntentError as exc:
        raise typer.BadParameter(str(exc)) from exc

    record = _build_record(intent, outcome, effective_model)
    step = 3
    if store:
        _echo_step(step, total_steps, "Saving to history")
        store.add_to_history(record, privacy_no_name=privacy_no_name)
        step += 1

    _echo_step(step, total_steps, "Done")
    typer.echo("")
    typer.echo(record.text)
    typer.echo("")
    typer.echo(f"sparkle={record.sparkle_score} tags={', '.join(record.tags)} id={record.artifact_id}")
    if outcome.state == "degraded":
        reason = outcome.error_kind or "local-only"
        typer.echo(f"Note: fallback content shown ({reason}); the model result was unavailable.")


@app.command("history")
def history(
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
) -> None:
    """List the most recent generations, newest first."""
    records = _open_store(db_path).list_history()
    if not records:
        typer.echo("History is empty.")
        return
    for record in records:
        _echo_record(record)


@app.command("clear-history")
def clear_history(
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
) -> None:
    """Remove every history entry. Favorites are kept."""
    _open_store(db_path).clear_history()
    typer.echo("History cleared.")


@app.command("favorite")
def favorite(
    artifact_id: str = typer.Argument(..., help="Artifact ID from history"),
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
) -> None:
    """Toggle the favorite state of an artifact."""
    state = _open_store(db_path).toggle_favorite(artifact_id)
    if state is None:
        raise typer.BadParameter(f"Artifact not found: {artifact_id}")
    typer.echo(f"{'Added to' if state else 'Removed from'} favorites: {artifact_id}")


@app.command("favorites")
def favorites(
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
) -> None:
    """List saved favorites."""
    records = _open_store(db_path).list_favorites()
    if not records:
        typer.echo("No favorites yet.")
        return
    for record in records:
        _echo_record(record)


@app.command("prefs")
def prefs(
    style: Style | None = typer.Option(None, help="Default tone style"),
    specificity: int | None = typer.Option(None, min=1, max=5, help="Default specificity"),
    privacy: bool | None = typer.Option(None, "--privacy/--no-privacy", help="Never send or store names"),
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
) -> None:
    """Show preferences, updating any that are passed."""
    store = _open_store(db_path)
    updates: dict[str, object] = {}
    if style is not None:
        updates["default_style"] = style
    if specificity is not None:
        updates["default_specificity"] = specificity
    if privacy is not None:
        updates["privacy_no_name"] = privacy

    current = store.update_preferences(**updates) if updates else store.get_preferences()
    typer.echo(f"default_style: {current.default_style.value}")
    typer.echo(f"default_specificity: {current.default_specificity}")
    typer.echo(f"privacy_no_name: {current.privacy_no_name}")


@app.command("doctor")
def doctor(
    db_path: Path = typer.Option(DEFAULT_DB_PATH, "--db", help="SQLite database path"),
) -> None:
    """Print local environment diagnostics used by the CLI."""
    typer.echo(f"DB exists: {db_path.exists()} ({db_path})")
    typer.echo(f"{GEMINI_KEY_ENV} set: {bool(resolve_api_key(GEMINI_KEY_ENV, DEFAULT_GEMINI_KEY_FILE))}")
    typer.echo(f"{OPENAI_KEY_ENV} set: {bool(resolve_api_key(OPENAI_KEY_ENV, DEFAULT_OPENAI_KEY_FILE))}")


if __name__ == "__main__":
    app()
