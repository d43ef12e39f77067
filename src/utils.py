"""
utils.py
--------
Small helpers shared by the pipeline steps: log setup, hashing and the
raw snapshot index.
"""
from __future__ import annotations

import hashlib, json, logging
from pathlib import Path
from typing import Any, Dict

from src.config import LOG_DIR, SNAPSHOT_INDEX

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(name: str) -> Path:
    """Send root logging to logs/<name>.log (once per file)."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / f"{name}.log"
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.resolve():
            return log_file
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return log_file


def sha256sum(path: Path) -> str:
    """Compute SHA256 hash of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def latest_snapshot_entry(index_path: Path = SNAPSHOT_INDEX) -> Dict[str, Any]:
    """Return the newest entry of data/_snapshots/index.json."""
    if not index_path.exists():
        raise FileNotFoundError(f"No snapshot index at {index_path}. Run fetch_raw first.")
    index = read_json(index_path)
    if not index:
        raise FileNotFoundError(f"Snapshot index {index_path} is empty.")
    return index[-1]
