"""
fetch_raw.py
-------------
Downloads the Starlink statistics page and stores a dated HTML snapshot
with SHA256 integrity tracking.
"""

import datetime, json, logging, requests
from pathlib import Path
from typing import Optional
from rich.console import Console

from src import config
from src.config import DATA_RAW, SNAPSHOT_INDEX
from src.errors import FetchError
from src.utils import read_json, setup_logging, sha256sum

console = Console()
logger = logging.getLogger(__name__)


def fetch_html(url: Optional[str] = None, timeout: Optional[float] = None) -> str:
    """GET the statistics page and return its body as text.

    Network failures, timeouts and non-2xx responses all raise FetchError.
    """
    url = url or config.SOURCE_URL
    timeout = timeout if timeout is not None else config.FETCH_TIMEOUT
    logger.info("Fetching %s (timeout=%ss)", url, timeout)
    try:
        resp = requests.get(url, timeout=timeout, headers={"User-Agent": config.USER_AGENT})
        resp.raise_for_status()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise FetchError(f"Failed to fetch stats page: HTTP {status}", url=url, status_code=status) from e
    except requests.RequestException as e:
        raise FetchError(f"Failed to fetch stats page: {e}", url=url) from e

    html = resp.text
    logger.info("Fetched %d characters from %s", len(html), url)
    return html


def load_html(path) -> str:
    """Read a local HTML copy of the page (fixture or saved snapshot)."""
    return Path(path).read_text(encoding="utf-8")


def save_snapshot(html: Optional[str] = None) -> Path:
    DATA_RAW.mkdir(parents=True, exist_ok=True)
    SNAPSHOT_INDEX.parent.mkdir(parents=True, exist_ok=True)

    # Timestamped filename
    now = datetime.datetime.now(datetime.timezone.utc)
    fname = f"stats_{now:%Y%m%d_%H%M%S}.html"
    fpath = DATA_RAW / fname

    if html is None:
        console.print(f"Fetching [cyan]{config.SOURCE_URL}[/cyan] ...")
        html = fetch_html()

    fpath.write_text(html, encoding="utf-8")

    sha = sha256sum(fpath)
    entry = {
        "file": str(fpath),
        "bytes": fpath.stat().st_size,
        "sha256": sha,
        "timestamp_utc": now.isoformat(timespec="seconds"),
    }

    # Append to index.json
    index = read_json(SNAPSHOT_INDEX) if SNAPSHOT_INDEX.exists() else []
    index.append(entry)
    with open(SNAPSHOT_INDEX, "w", encoding="utf-8") as f:
        json.dump(index, f, indent=2)

    logger.info("Snapshot saved: %s (sha256=%s)", fpath, sha)
    console.print(
        f"[green]Snapshot saved:[/green] {fpath.name} "
        f"({entry['bytes']} bytes, sha256={sha[:12]}...)"
    )
    return fpath


if __name__ == "__main__":
    setup_logging("fetch_raw")
    try:
        save_snapshot()
    except Exception as e:
        logger.exception("Fetch failed")
        console.print(f"[red]Fetch failed:[/red] {e}")
        raise SystemExit(1)
