"""Publish ledger — the JSON history of clips the bot has already posted.

The compilation is built from the most recent entries of this history.

Ledger schema (db.json):
  {
    "history": [
      {"driveId": "1AbC...", "order": 0, "status": "published"},
      ...
    ]
  }

`driveId` is required. `order` defaults to the entry's position in the
list; `status` defaults to "published". Other keys (titles, timestamps
written by the uploader) are ignored. A missing ledger file is an empty
history. Anything else that does not match the schema raises LedgerError.
"""

import json
from dataclasses import dataclass
from pathlib import Path

from .errors import LedgerError
from .models import SourceClip

VALID_STATUSES = {"published", "pending", "failed"}


@dataclass(frozen=True)
class LedgerEntry:
    remote_id: str
    order: int
    status: str = "published"


def parse_ledger(raw) -> list[LedgerEntry]:
    """Validate decoded ledger JSON and return entries sorted by `order`.

    Raises:
        LedgerError: Wrong top-level shape, missing or invalid fields,
            duplicate order keys.
    """
    if not isinstance(raw, dict):
        raise LedgerError("Ledger: top level must be an object")
    history = raw.get("history", [])
    if not isinstance(history, list):
        raise LedgerError("Ledger: 'history' must be a list")

    entries = []
    seen_orders = set()
    for i, item in enumerate(history):
        if not isinstance(item, dict):
            raise LedgerError(f"Ledger entry {i}: must be an object")

        remote_id = item.get("driveId")
        if not isinstance(remote_id, str) or not remote_id.strip():
            raise LedgerError(f"Ledger entry {i}: missing or empty 'driveId'")

        order = item.get("order", i)
        if isinstance(order, bool) or not isinstance(order, int):
            raise LedgerError(f"Ledger entry {i}: 'order' must be an integer, got {order!r}")
        if order in seen_orders:
            raise LedgerError(f"Ledger entry {i}: duplicate order {order}")
        seen_orders.add(order)

        status = item.get("status", "published")
        if status not in VALID_STATUSES:
            raise LedgerError(
                f"Ledger entry {i}: invalid status '{status}'. "
                f"Valid: {sorted(VALID_STATUSES)}"
            )

        entries.append(LedgerEntry(remote_id=remote_id.strip(), order=order, status=status))

    return sorted(entries, key=lambda e: e.order)


def load_ledger(ledger_path: str | Path) -> list[LedgerEntry]:
    """Read and validate a ledger file.

    Raises:
        LedgerError: Unreadable file, invalid JSON, or schema violation.
    """
    path = Path(ledger_path)
    if not path.exists():
        return []
    try:
        with open(path) as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise LedgerError(f"Ledger {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise LedgerError(f"Cannot read ledger {path}: {e}") from e
    return parse_ledger(raw)


def select_sources(
    entries: list[LedgerEntry],
    max_clips: int = 12,
    min_id_length: int = 20,
) -> list[SourceClip]:
    """Pick the clips for a compilation, oldest first.

    Takes the last `max_clips` published entries, then drops ids shorter
    than `min_id_length` (placeholder rows left by manual edits). The
    returned clips are indexed 0..n-1 in ledger order.
    """
    published = [e for e in entries if e.status == "published"]
    recent = published[-max_clips:] if max_clips else []

    selected = []
    for entry in recent:
        if len(entry.remote_id) < min_id_length:
            print(f"  SKIP   {entry.remote_id} (id shorter than {min_id_length})")
            continue
        selected.append(SourceClip(index=len(selected), remote_id=entry.remote_id))
    return selected
