"""CLI entry point for PictoNote."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.panel import Panel
from rich.progress import Progress, TaskID
from rich.syntax import Syntax
from rich.table import Table

from pictonote.assist import AssistError, create_assistant
from pictonote.config import PictoNoteConfig, load_config
from pictonote.config.loader import DEFAULT_CONFIG_TEMPLATE
from pictonote.errors import NotFound, ParseError, SyncInProgressError
from pictonote.journal import JournalService, LocalEntryStore
from pictonote.logging_setup import setup_logging
from pictonote.remote.base import RemoteEntryStore
from pictonote.sync import SyncEngine, SyncPhase, SyncReport

app = typer.Typer(
    name="pictonote",
    help="Photo journal with cloud sync and an AI writing assistant.",
)

entries_app = typer.Typer(help="Browse and write journal entries.")
app.add_typer(entries_app, name="entries")

assist_app = typer.Typer(help="Journal prompts, reflections and summaries.")
app.add_typer(assist_app, name="assist")

config_app = typer.Typer(help="Manage PictoNote configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: PictoNoteConfig | None = None

_USER_ENV = "PICTONOTE_USER"


def _get_config() -> PictoNoteConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to pictonote.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    setup_logging(_config.log_level, _config.log_format)


def _make_remote(cfg: PictoNoteConfig) -> RemoteEntryStore:
    from pictonote.remote.firestore import FirestoreRemoteStore

    return FirestoreRemoteStore.from_config(cfg.firebase)


def _make_engine(cfg: PictoNoteConfig) -> SyncEngine:
    return SyncEngine(LocalEntryStore(cfg.storage), _make_remote(cfg), cfg.sync)


def _resolve_user(user: str | None) -> str:
    resolved = user or os.environ.get(_USER_ENV)
    if not resolved:
        rprint(f"[red]Error:[/red] pass --user or set {_USER_ENV}")
        raise typer.Exit(1)
    return resolved


def _display_report(report: SyncReport) -> None:
    table = Table(title="Sync Report")
    table.add_column("Processed", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Uploaded", justify="right")
    table.add_column("Downloaded", justify="right")
    table.add_column("Errors", justify="right", style="red")
    table.add_row(
        str(report.processed),
        str(report.succeeded),
        str(report.uploaded),
        str(report.downloaded),
        str(len(report.errors)),
    )
    rprint(table)
    for err in report.errors:
        where = err.entry_id or "(sync)"
        tag = " [yellow](partial)[/yellow]" if err.partial else ""
        rprint(f"  [red]{err.kind}[/red] {where}: {err.error}{tag}")


@app.command()
def sync(
    user: Annotated[str | None, typer.Option("--user", "-u", help="Signed-in user id")] = None,
) -> None:
    """Synchronize local entries with the cloud."""
    cfg = _get_config()
    user_id = _resolve_user(user)

    try:
        engine = _make_engine(cfg)
    except Exception as e:
        rprint(f"[red]Error:[/red] could not set up remote store: {e}")
        raise typer.Exit(1)

    with Progress(transient=True) as progress:
        tasks: dict[SyncPhase, TaskID] = {}

        def on_phase(phase: SyncPhase) -> None:
            tasks[phase] = progress.add_task(phase.value.capitalize(), total=None)

        def on_progress(phase: SyncPhase, current: int, total: int) -> None:
            if phase in tasks:
                progress.update(tasks[phase], completed=current, total=total)

        try:
            report = asyncio.run(engine.synchronize(user_id, on_phase, on_progress))
        except SyncInProgressError as e:
            rprint(f"[yellow]{e}[/yellow]")
            raise typer.Exit(1)

    _display_report(report)
    if report.aborted:
        raise typer.Exit(1)


@entries_app.command("list")
def entries_list(
    year: Annotated[int | None, typer.Option("--year", "-y")] = None,
    month: Annotated[int | None, typer.Option("--month", "-m")] = None,
    day: Annotated[int | None, typer.Option("--day", "-d")] = None,
) -> None:
    """List entries, optionally filtered by calendar date."""
    store = LocalEntryStore(_get_config().storage)
    try:
        ids = store.list(year, month, day)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    if not ids:
        rprint("[yellow]No entries found.[/yellow]")
        return

    service = JournalService(store)
    table = Table(title=f"Entries ({len(ids)})")
    table.add_column("Entry", style="cyan")
    table.add_column("Image", style="magenta")
    table.add_column("Preview")
    for entry_id in ids:
        entry = service.load(entry_id)
        preview = entry.text.strip().splitlines()[0][:60] if entry.text.strip() else "-"
        table.add_row(entry_id, "yes" if entry.image_path else "-", preview)
    rprint(table)


@entries_app.command("show")
def entries_show(entry_id: str = typer.Argument(..., help="Entry id, e.g. 2025-06-01")) -> None:
    """Print one entry."""
    service = JournalService(LocalEntryStore(_get_config().storage))
    try:
        entry = service.load(entry_id)
    except (NotFound, ParseError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    body = entry.text or "[dim](empty)[/dim]"
    if entry.image_path:
        body += f"\n\n[dim]Image:[/dim] {entry.image_path}"
    rprint(Panel(body, title=entry.entry_id, border_style="blue"))


@entries_app.command("new")
def entries_new(
    text: str = typer.Argument(..., help="Entry text"),
    image: Annotated[str | None, typer.Option("--image", "-i", help="Image to attach")] = None,
    user: Annotated[str | None, typer.Option("--user", "-u", help="User id for auto-sync")] = None,
) -> None:
    """Save a new entry; pushes it to the cloud when auto-sync is on."""
    cfg = _get_config()
    store = LocalEntryStore(cfg.storage)
    engine = None
    user_id = user or os.environ.get(_USER_ENV)
    if cfg.sync.auto_sync and user_id:
        try:
            engine = _make_engine(cfg)
        except Exception as e:
            rprint(f"[yellow]Auto-sync unavailable:[/yellow] {e}")

    service = JournalService(store, engine, user_id, auto_sync=engine is not None)
    try:
        result = asyncio.run(service.save(text, image_source=image))
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    rprint(f"[green]Saved[/green] {result.entry_id} -> {result.path}")
    if result.synced is False:
        rprint("[yellow]Saved locally. Auto-sync to cloud failed.[/yellow]")


@assist_app.command("prompt")
def assist_prompt(
    kind: str = typer.Argument("general", help="reflective | creative | goal | gratitude"),
) -> None:
    """Suggest a journal prompt."""
    _run_assist(lambda a: a.suggest_prompt(kind))


@assist_app.command("reflect")
def assist_reflect(entry_id: str = typer.Argument(..., help="Entry to reflect on")) -> None:
    """Reflect on a saved entry."""
    service = JournalService(LocalEntryStore(_get_config().storage))
    try:
        entry = service.load(entry_id)
    except (NotFound, ParseError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _run_assist(lambda a: a.reflect(entry.text))


@assist_app.command("summary")
def assist_summary(days: int = typer.Option(7, "--days", help="How many days back")) -> None:
    """Summarize the past week of entries."""
    service = JournalService(LocalEntryStore(_get_config().storage))
    text = service.entries_since(days)
    _run_assist(lambda a: a.weekly_summary(text))


def _run_assist(call) -> None:
    cfg = _get_config()
    try:
        assistant = create_assistant(cfg.assist)
        output = asyncio.run(call(assistant))
    except (ValueError, AssistError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    rprint(Panel(output, border_style="green"))


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default pictonote.yaml in current directory."""
    target = Path("pictonote.yaml")
    if target.exists() and not force:
        rprint("[yellow]pictonote.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
