"""
Shared plumbing for the CSV-file-backed stores.
"""
import csv
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A store could not be read or written."""


def read_rows(path: Path) -> list[dict]:
    """Read all rows of a store file; a missing file is an empty store."""
    if not path.exists():
        return []
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return list(csv.DictReader(f))
    except (OSError, csv.Error) as e:
        logger.error("Failed to read %s: %s", path, e)
        raise StoreError(f"Failed to read {path.name}: {e}") from e


def write_rows(path: Path, columns: list[str], rows: list[dict]):
    """Rewrite a store file with the given rows."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        raise StoreError(f"Failed to write {path.name}: {e}") from e
