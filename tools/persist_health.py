"""
RESPONSIBILITIES
- Run dependency and filesystem health checks for the workbook reader and writer.
- Provide both a callable API and a small CLI for quick diagnostics.
PROCESS OVERVIEW
1. persist_healthcheck() aggregates health from the reader and writer stores.
2. CLI prints per-store status along with the SQLite library version.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import typer

from keste_persist.stores.base_store import PersistHealth
from keste_persist.stores.sqlite_reader import reader_healthcheck
from keste_persist.stores.sqlite_writer import writer_healthcheck
from keste_persist.utils.log import get_logger

app = typer.Typer(help="Run persistence layer health checks.")
logger = get_logger("tools.persist_health")


def persist_healthcheck(root: Path | None = None) -> Dict[str, PersistHealth]:
    """Return per-store health diagnostic results."""

    checks = {
        "reader": reader_healthcheck,
        "writer": writer_healthcheck,
    }
    results: Dict[str, PersistHealth] = {}
    for name, check in checks.items():
        try:
            results[name] = check(root)
        except Exception as exc:  # noqa: BLE001 - capture unexpected failures
            logger.error("Healthcheck failed for %s: %s", name, exc)
            results[name] = PersistHealth(
                dependencies={},
                writable_paths={},
                issues=[str(exc)],
            )
    return results


@app.command("run")
def run_command(
    root: Optional[Path] = typer.Option(None, help="Alternate persistence root."),
) -> None:
    """Execute health checks and pretty-print the outcome."""

    results = persist_healthcheck(root)
    for name, health in results.items():
        status = "OK" if health.is_healthy() else "FAIL"
        typer.echo(f"[{status}] {name} store (sqlite {health.sqlite_version})")
        if not health.dependencies:
            typer.echo("  dependencies: (not evaluated)")
        else:
            for dep, ok in health.dependencies.items():
                typer.echo(f"  dependency {dep}: {'OK' if ok else 'MISSING'}")
        for path, ok in health.writable_paths.items():
            typer.echo(f"  writable {path}: {'yes' if ok else 'no'}")
        if health.issues:
            typer.echo("  issues:")
            for issue in health.issues:
                typer.echo(f"    - {issue}")
    if not all(health.is_healthy() for health in results.values()):
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
