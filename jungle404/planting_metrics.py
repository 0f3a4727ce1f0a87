import csv
import json
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from . import settings

FIELDNAMES = [
    "server_ts",
    "event",
    "intent_id",
    "order_id",
    "origin",
    "status",
    "reason",
    "latency_ms",
    "created_at",
    "payload_json",
]

_write_lock = threading.Lock()


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _write_header_if_needed(path: Path) -> None:
    if path.exists():
        return
    _ensure_parent(path)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=FIELDNAMES)
        writer.writeheader()


def log_planting_event(
    *,
    event: str,
    intent_id: Optional[str] = None,
    order_id: Optional[str] = None,
    origin: Optional[str] = None,
    status: Optional[str] = None,
    reason: Optional[str] = None,
    latency_ms: Optional[int] = None,
    created_at: Optional[float] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    if not settings.PLANTING_EVENTS_ENABLED:
        return
    row = {
        "server_ts": int(time.time()),
        "event": event,
        "intent_id": intent_id or "",
        "order_id": order_id or "",
        "origin": origin or "",
        "status": status or "",
        "reason": reason or "",
        "latency_ms": latency_ms if latency_ms is not None else "",
        "created_at": int(created_at) if created_at else "",
        "payload_json": json.dumps(payload, ensure_ascii=True) if payload else "",
    }
    path = settings.EVENTS_CSV
    with _write_lock:
        _write_header_if_needed(path)
        with path.open("a", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=FIELDNAMES)
            writer.writerow(row)
