#!/usr/bin/env python3
import argparse
import json
import time
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import urljoin

import requests


SCENARIOS = [
    "single_confirm",
    "retried_confirm",
    "concurrent_confirm",
    "unknown_intent",
]


def create_intent(session, base_url):
    res = session.post(urljoin(base_url, "/planting-intents"), timeout=10)
    res.raise_for_status()
    return res.json()["intent_id"]


def confirm(session, base_url, intent_id):
    res = session.post(urljoin(base_url, "/confirm"), json={"intent_id": intent_id}, timeout=10)
    return res.status_code, res.json()


def confirm_in_own_session(base_url, intent_id):
    with requests.Session() as session:
        return confirm(session, base_url, intent_id)


def fetch_proof(session, base_url, planting_id):
    res = session.get(urljoin(base_url, "/proofs"), params={"planting_id": planting_id}, timeout=10)
    return res.status_code, res.json()


def run_scenario(session, base_url, scenario, burst):
    if scenario == "unknown_intent":
        status, _ = confirm(session, base_url, "missing-intent")
        return status == 404

    intent_id = create_intent(session, base_url)
    if scenario == "single_confirm":
        attempts = 1
    elif scenario == "retried_confirm":
        attempts = 3
    else:
        attempts = burst

    if scenario == "concurrent_confirm":
        with ThreadPoolExecutor(max_workers=attempts) as pool:
            results = list(pool.map(lambda _: confirm_in_own_session(base_url, intent_id), range(attempts)))
    else:
        results = [confirm(session, base_url, intent_id) for _ in range(attempts)]

    planting_ids = {body.get("planting_id") for status, body in results if status == 200}
    if len(planting_ids) != 1 or any(status != 200 for status, _ in results):
        return False
    status, proof = fetch_proof(session, base_url, planting_ids.pop())
    return status == 200 and proof.get("intent_id") == intent_id


def main():
    parser = argparse.ArgumentParser(description="Exercise a running Jungle 404 planting API.")
    parser.add_argument("--base-url", default="http://localhost:8000", help="Planting API base URL")
    parser.add_argument("--trials", type=int, default=20, help="Trials per scenario")
    parser.add_argument("--burst", type=int, default=8, help="Parallel confirmations in the concurrent scenario")
    parser.add_argument("--sleep", type=float, default=0.05, help="Sleep between trials")
    args = parser.parse_args()

    session = requests.Session()
    summary = {}
    for scenario in SCENARIOS:
        passed = 0
        for _ in range(args.trials):
            if run_scenario(session, args.base_url, scenario, args.burst):
                passed += 1
            time.sleep(args.sleep)
        summary[scenario] = {"passed": passed, "trials": args.trials}
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
