"""
report_stats.py
---------------
Prints the newest stored snapshot as a table and writes
reports/stats_YYYYMMDD_HHMMSS.txt with totals, null counts and dtypes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import Engine

from src.config import REPORTS_DIR
from src.store import get_engine, latest_snapshot, snapshot_timestamps

console = Console()

SUMMARY_COLUMNS = ["total_sats_launched", "total_in_orbit", "total_working", "total_operational"]


def constellation_summary(df: pd.DataFrame) -> Dict[str, int]:
    """Column totals over all missions; missing values are skipped."""
    return {c: int(pd.to_numeric(df[c], errors="coerce").sum(skipna=True)) for c in SUMMARY_COLUMNS}


def _fmt(v) -> str:
    return "-" if pd.isna(v) else str(int(v))


def render_table(df: pd.DataFrame, title: str = "Starlink missions") -> Table:
    table = Table(title=title)
    table.add_column("Mission")
    table.add_column("Date")
    for c in ["In orbit", "Working", "Operational"]:
        table.add_column(c, justify="right")
    for row in df.itertuples(index=False):
        table.add_row(row.mission, row.date, _fmt(row.total_in_orbit),
                      _fmt(row.total_working), _fmt(row.total_operational))
    return table


def print_latest(engine: Optional[Engine] = None) -> Optional[Path]:
    engine = engine or get_engine()
    df = latest_snapshot(engine)
    if df.empty:
        console.print("[yellow]No snapshots stored yet. Run run_pipeline first.[/yellow]")
        return None

    captured = df["timestamp"].iloc[0]
    history = snapshot_timestamps(engine)
    console.print(render_table(df, title=f"Starlink missions @ {captured}"))
    summary = constellation_summary(df)
    for k, v in summary.items():
        console.print(f"{k:>20}: [bold]{v}[/bold]")
    console.print(f"{len(history)} snapshots stored since {history[-1]:%Y-%m-%d %H:%M} UTC")

    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    report_path = REPORTS_DIR / f"stats_{stamp}.txt"
    with open(report_path, "w", encoding="utf-8") as f:
        f.write(f"Snapshot: {captured}\n")
        f.write(f"Rows: {len(df)}\n")
        f.write(f"Snapshots stored: {len(history)} (first {history[-1].isoformat()})\n\n")
        f.write("Totals:\n")
        f.write("\n".join(f"{k}: {v}" for k, v in summary.items()))
        f.write("\n\nNull counts:\n")
        f.write(df.isna().sum().to_string())
        f.write("\n\nDtypes:\n")
        f.write(df.dtypes.to_string())

    console.print(f"[green]Report saved:[/green] {report_path.name}")
    return report_path


if __name__ == "__main__":
    try:
        print_latest()
    except Exception as e:
        console.print(f"[red]Report failed:[/red] {e}")
        raise SystemExit(1)
