#!/usr/bin/env python3
import argparse
import csv
from collections import Counter
from pathlib import Path
from statistics import median


def percentile(values, pct):
    if not values:
        return None
    values = sorted(values)
    k = (len(values) - 1) * (pct / 100.0)
    f = int(k)
    c = min(f + 1, len(values) - 1)
    if f == c:
        return values[f]
    return values[f] + (values[c] - values[f]) * (k - f)


def load_rows(path: Path):
    if not path.exists():
        return []
    with path.open(newline="", encoding="utf-8") as handle:
        return list(csv.DictReader(handle))


def compute_latency(rows, event):
    values = [int(row["latency_ms"]) for row in rows if row.get("event") == event and row.get("latency_ms")]
    return {
        "event": event,
        "median": median(values) if values else None,
        "p95": percentile(values, 95) if values else None,
        "max": max(values) if values else None,
        "count": len(values),
    }


def find_double_bookings(rows):
    orders_per_intent = {}
    for row in rows:
        if row.get("event") != "intent_confirmed":
            continue
        orders_per_intent.setdefault(row["intent_id"], set()).add(row["order_id"])
    return {intent_id: sorted(orders) for intent_id, orders in orders_per_intent.items() if len(orders) > 1}


def main():
    parser = argparse.ArgumentParser(description="Summarise the planting event log.")
    parser.add_argument("--events", required=True, help="Path to planting_events.csv")
    args = parser.parse_args()

    rows = load_rows(Path(args.events))
    counts = Counter(row.get("event") for row in rows)
    print("Event counts:")
    for event, count in sorted(counts.items()):
        print(f"- {event}: {count}")

    intents = counts.get("intent_created", 0)
    confirmed = counts.get("intent_confirmed", 0)
    rate = (confirmed / intents * 100.0) if intents else 0.0
    print(f"\nConfirmation rate: {rate:.1f}% ({confirmed}/{intents})")

    print("\nLatency summary:")
    print(compute_latency(rows, "intent_confirmed"))
    print(compute_latency(rows, "order_processed"))

    doubles = find_double_bookings(rows)
    print(f"\nIntents with more than one order: {len(doubles)}")
    for intent_id, orders in doubles.items():
        print(f"- {intent_id}: {', '.join(orders)}")


if __name__ == "__main__":
    main()
