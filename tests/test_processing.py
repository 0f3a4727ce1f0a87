"""
Simulated partner hand-off and the CSV event log.
"""
import csv
import time

import pytest

from jungle404 import planting_metrics, settings
from jungle404.core import NotFound
from jungle404.model import OrderRecord
from jungle404.processing import OrderProcessor


def make_order(order_id: str = "order-1") -> OrderRecord:
    return OrderRecord(
        order_id=order_id,
        intent_id="intent-1",
        created_at=time.time(),
        confirmed_at=time.time(),
        location=(-3.4, -73.2),
    )


@pytest.fixture
def events_csv(tmp_path, monkeypatch):
    path = tmp_path / "planting_events.csv"
    monkeypatch.setattr(settings, "EVENTS_CSV", path)
    monkeypatch.setattr(settings, "PLANTING_EVENTS_ENABLED", True)
    return path


def read_events(path):
    with path.open(newline="", encoding="utf-8") as handle:
        return list(csv.DictReader(handle))


def test_submit_returns_before_delay_elapses():
    processor = OrderProcessor(delay_seconds=5)
    start = time.perf_counter()
    processor.submit(make_order())
    elapsed = time.perf_counter() - start

    assert elapsed < 1
    assert processor.pending == 1
    assert processor.processed == 0
    processor.shutdown()


def test_shutdown_cancels_pending_hand_offs():
    processor = OrderProcessor(delay_seconds=5)
    processor.submit(make_order("a"))
    processor.submit(make_order("b"))

    processor.shutdown()
    processor.submit(make_order("c"))

    assert processor.pending == 0
    assert processor.processed == 0


def test_timer_processes_order(events_csv):
    processor = OrderProcessor(delay_seconds=0.01)
    processor.submit(make_order())

    deadline = time.time() + 5
    while processor.processed == 0 and time.time() < deadline:
        time.sleep(0.01)

    assert processor.processed == 1
    assert processor.pending == 0
    rows = read_events(events_csv)
    assert [row["event"] for row in rows] == ["order_processed"]
    assert rows[0]["order_id"] == "order-1"


def test_zero_delay_disables_hand_off():
    processor = OrderProcessor(delay_seconds=0)
    processor.submit(make_order())
    assert processor.pending == 0


def test_ledger_events_written_in_order(events_csv, ledger):
    intent_id = ledger.create_intent(origin="203.0.113.9")
    order_id = ledger.confirm_intent(intent_id)
    ledger.confirm_intent(intent_id)
    ledger.get_proof(order_id)
    with pytest.raises(NotFound):
        ledger.get_proof("missing")

    rows = read_events(events_csv)
    assert [row["event"] for row in rows] == [
        "intent_created",
        "intent_confirmed",
        "intent_confirm_replayed",
        "proof_served",
        "proof_not_found",
    ]
    assert rows[0]["origin"] == "203.0.113.9"
    assert rows[1]["order_id"] == order_id
    assert rows[1]["payload_json"]


def test_events_disabled_writes_nothing(events_csv, monkeypatch):
    monkeypatch.setattr(settings, "PLANTING_EVENTS_ENABLED", False)
    planting_metrics.log_planting_event(event="intent_created", intent_id="x")
    assert not events_csv.exists()
