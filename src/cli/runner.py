# src/cli/runner.py

"""Command runners for collect / generate / health."""

import logging
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.adapters.registry import AdapterRegistry
from src.config.settings import Settings
from src.services.artifact_generator import ArtifactService
from src.services.collector import CollectionReport, Collector
from src.services.error_log import ErrorLog
from src.services.health_checker import (
    DATA_HEALTH_PATH,
    ConnectivityChecker,
    DataHealthChecker,
    DataHealthReport,
)
from src.storage.artifact_writer import ArtifactWriter
from src.storage.snapshot_store import JsonSnapshotStore

logger = logging.getLogger("pricelist_intel.cli")

# Stderr console so stdout stays free for piping
_err = Console(stderr=True)

ERRORS_FILENAME = "errors.json"


def resolve_brands(brand_csv: str | None) -> list[str] | None:
    """Map a comma-separated list of brand ids to a validated list.

    Returns ``None`` (all brands) when *brand_csv* is ``None``.
    Raises ``SystemExit`` on unknown ids.
    """
    if brand_csv is None:
        return None
    available = {b["id"] for b in Settings.BRANDS}
    requested = [b.strip() for b in brand_csv.split(",") if b.strip()]
    unknown = [r for r in requested if r not in available]
    if unknown:
        _err.print(f"[red]Unknown brand(s): {', '.join(unknown)}[/red]")
        _err.print(f"[dim]Available: {', '.join(sorted(available))}[/dim]")
        raise SystemExit(1)
    return requested


def _data_dir(data_dir: str | None) -> Path:
    return Path(data_dir) if data_dir else Settings.DATA_DIR


def _print_collection(report: CollectionReport) -> None:
    table = Table(
        title=f"Collection {report.date.isoformat()}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Brand", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Rows", justify="right")
    table.add_column("Notes", style="dim")

    for d in report.details:
        if d.used_fallback:
            status = "[yellow]FALLBACK[/yellow]"
        elif d.success:
            status = "[green]OK[/green]"
        else:
            status = "[red]FAILED[/red]"
        note = d.error or ""
        if d.used_fallback and d.original_date:
            note = f"from {d.original_date.isoformat()}: {note}"
        table.add_row(d.brand, status, str(d.count), note)

    _err.print(table)
    _err.print(
        f"Total {report.total_brands} · success {report.successful} · "
        f"failed {report.failed} · fallback {report.used_fallback}"
    )


def run_collect(
    brand_csv: str | None,
    run_date: date | None,
    data_dir: str | None = None,
) -> int:
    """Collect every (or the selected) brand; 1 only if all failed."""
    root = _data_dir(data_dir)
    error_log = ErrorLog(root / ERRORS_FILENAME)
    registry = AdapterRegistry.from_settings(
        error_log=error_log, only=resolve_brands(brand_csv)
    )
    collector = Collector(
        registry,
        JsonSnapshotStore(root),
        error_log=error_log,
        writer=ArtifactWriter(root),
    )
    _err.print(
        f"[bold]Collecting[/bold] {len(registry)} brands "
        f"[dim]→ {root}[/dim]"
    )
    report = collector.run(run_date)
    _print_collection(report)
    if report.fatal:
        _err.print("[red]Critical: all brands failed, no fallback data[/red]")
    return report.exit_code


async def run_generate(
    only_csv: str | None = None, data_dir: str | None = None,
) -> int:
    """Regenerate every derived artifact from the stored snapshots."""
    root = _data_dir(data_dir)
    only = (
        [g.strip() for g in only_csv.split(",") if g.strip()]
        if only_csv
        else None
    )
    service = ArtifactService(
        JsonSnapshotStore(root),
        ArtifactWriter(root),
        error_log=ErrorLog.resume(root / ERRORS_FILENAME),
    )
    outcomes = await service.generate_all(only)

    table = Table(
        title="Artifacts", show_lines=True, title_style="bold cyan",
    )
    table.add_column("Generator", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Output", style="dim", overflow="fold")
    for o in outcomes:
        status = "[green]OK[/green]" if o.success else "[red]FAILED[/red]"
        table.add_row(o.name, status, "\n".join(o.paths) or (o.error or ""))
    _err.print(table)
    return 1 if any(not o.success for o in outcomes) else 0


def _print_data_health(report: DataHealthReport) -> None:
    table = Table(
        title=f"Data Health: {report.status.upper()}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Brand", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Vehicles", justify="right")
    table.add_column("Latest", justify="center")
    table.add_column("Issues", style="dim")
    colours = {"ok": "green", "warning": "yellow", "error": "red"}
    for b in report.brands:
        colour = colours.get(b.status, "white")
        table.add_row(
            b.name,
            f"[{colour}]{b.status.upper()}[/{colour}]",
            str(b.vehicle_count),
            b.latest_date.isoformat() if b.latest_date else "—",
            "; ".join(b.issues),
        )
    _err.print(table)
    for issue in report.issues:
        _err.print(f"[red]✗ {issue}[/red]")


async def run_health(probe: bool = False, data_dir: str | None = None) -> int:
    """Check stored data (and optionally vendor connectivity)."""
    root = _data_dir(data_dir)
    report = DataHealthChecker(JsonSnapshotStore(root)).check()
    ArtifactWriter(root).write(DATA_HEALTH_PATH, report)
    _print_data_health(report)
    exit_code = 1 if report.status == "error" else 0

    if probe:
        _err.print("[bold]Probing vendor homepages...[/bold]")
        results = await ConnectivityChecker(
            AdapterRegistry.from_settings()
        ).check_all()
        table = Table(
            title="Vendor Connectivity",
            show_lines=True,
            title_style="bold cyan",
        )
        table.add_column("Brand", style="bold")
        table.add_column("Status", justify="center")
        table.add_column("Latency", justify="right")
        table.add_column("Notes", style="dim")
        for r in results:
            if r.status == "ok":
                status = "[green]OK[/green]"
            elif r.status == "slow":
                status = "[yellow]SLOW[/yellow]"
            else:
                status = "[red]DOWN[/red]"
            latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "—"
            table.add_row(r.source_id, status, latency, r.message)
        _err.print(table)

    return exit_code
