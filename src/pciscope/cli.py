from __future__ import annotations

import json
import logging
import platform
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .collect import resolve
from .collect.pciids import load_pci_ids
from .collect.sysfs import SYSFS_PCI_DEVICES
from .config import Settings, load_settings
from .errors import ConfigError, EnumerationError, PciscopeError
from .registry import build_collector, collector_names
from .sink import ObservationList


app = typer.Typer(add_completion=False, no_args_is_help=True, help="pciscope CLI")

logger = logging.getLogger(__name__)

_stderr = Console(stderr=True)


def _ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _settings(verbose: bool) -> Settings:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)
    level = logging.DEBUG if verbose else settings.log_level_number
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=_stderr, show_path=False)],
        force=True,
    )
    return settings


def _fail(exc: PciscopeError, fmt: str, code: int, prefix: str = "") -> NoReturn:
    # in json mode stdout carries observations only
    if fmt == "json":
        typer.echo(json.dumps(exc.to_dict()), err=True)
    else:
        print(f"[red]{escape(prefix + str(exc))}[/red]")
    raise typer.Exit(code=code)


def _observations_table(observations: ObservationList) -> Table:
    table = Table(title="Observations")
    table.add_column("metric", style="cyan")
    table.add_column("labels")
    table.add_column("value", justify="right", style="green")
    for obs in observations:
        labels = ", ".join(f"{k}={v!r}" for k, v in obs["labels"])
        table.add_row(obs["name"], escape(labels), f"{obs['value']:g}")
    return table


@app.command()
def scan(
    collector: List[str] = typer.Option(
        ["pcie"], "--collector", "-c", help="Collector to run (repeatable): pcie, kernelmodules"
    ),
    fmt: str = typer.Option("table", "--format", "-f", help="Output format: table or json"),
    out: Optional[Path] = typer.Option(None, help="Write JSON observations to this path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Run one poll of the selected collectors and report the observations."""
    settings = _settings(verbose)

    if platform.system() != "Linux" and settings.sysfs_pci_root == SYSFS_PCI_DEVICES:
        print("[red]Non-Linux OS detected; point PCISCOPE_SYSFS_PCI at a sysfs tree.[/red]")
        raise typer.Exit(code=2)

    if fmt not in ("table", "json"):
        print(f"[red]Unknown format:[/red] {fmt}")
        raise typer.Exit(code=1)

    try:
        collectors = [build_collector(name, settings) for name in collector]
    except ConfigError as exc:
        _fail(exc, fmt, code=1)

    sink = ObservationList()
    for c in collectors:
        try:
            count = c.update(sink)
        except EnumerationError as exc:
            _fail(exc, fmt, code=3, prefix=f"Collector {c.name} failed: ")
        logger.info("%s: %d entities", c.name, count)

    payload = [
        {"name": o["name"], "labels": dict(o["labels"]), "value": o["value"]} for o in sink
    ]
    if out is not None:
        _ensure_parent_dir(out)
        with out.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        print(f"[green]Wrote {len(payload)} observations to[/green] {out}")
    elif fmt == "json":
        typer.echo(json.dumps(payload, indent=2))
    else:
        Console().print(_observations_table(sink))


@app.command()
def lookup(
    vendor: str = typer.Argument(..., help="Vendor id, e.g. 0x8086"),
    device: Optional[str] = typer.Argument(None, help="Device id, e.g. 0x1237"),
    class_id: Optional[str] = typer.Option(None, "--class-id", help="Class code, e.g. 0x060400"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Resolve PCI ids against the pci.ids database."""
    settings = _settings(verbose)
    ids = load_pci_ids(settings.pci_ids_paths)
    if ids.is_empty():
        print("[yellow]No pci.ids database found; showing raw ids[/yellow]")

    typer.echo(f"vendor: {resolve.vendor_name(ids, vendor)}")
    if device is not None:
        typer.echo(f"device: {resolve.device_name(ids, vendor, device)}")
    if class_id is not None:
        typer.echo(f"class: {resolve.class_name(ids, class_id)}")


@app.command("collectors")
def list_collectors() -> None:
    """List the available collector names."""
    for name in collector_names():
        typer.echo(name)


if __name__ == "__main__":
    app()
