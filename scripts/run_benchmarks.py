from __future__ import annotations

import csv
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys
import os

import psutil

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from fastapi.testclient import TestClient

from app.main import create_app

ITERATIONS = 1000
TASKS_PER_RUN = 12
FORWARD_OUTPUT = Path("benchmarks_forward.csv")
BACKWARD_OUTPUT = Path("benchmarks_backward.csv")
ORIGIN = {"lat": 30.6280, "lng": -96.3344}


def build_payload(policy: str, rng: random.Random) -> dict:
    start = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)
    tasks = []
    for index in range(TASKS_PER_RUN):
        fixed = index % 4 == 0
        tasks.append(
            {
                "id": f"bench-{index}",
                "title": f"Errand {index}",
                "lat": ORIGIN["lat"] + rng.uniform(-0.1, 0.1),
                "lng": ORIGIN["lng"] + rng.uniform(-0.1, 0.1),
                "duration_minutes": rng.choice([10, 15, 30, 45]),
                "fixed_time": fixed,
                "must_arrive_by": (start + timedelta(hours=1 + index)).isoformat() if fixed else None,
            }
        )
    return {"tasks": tasks, "origin": ORIGIN, "start_time": start.isoformat(), "policy": policy}


def run_benchmark(
    *,
    iterations: int,
    filename: Path,
    policy: str,
    client: TestClient,
) -> None:
    process = psutil.Process(os.getpid())
    rng = random.Random(42)
    rows: list[tuple[int, float, float, float, float]] = []
    for run_id in range(1, iterations + 1):
        cpu_before = process.cpu_times()

        response = client.post("/api/v1/scheduler/plan", json=build_payload(policy, rng))
        response.raise_for_status()
        data = response.json()

        cpu_after = process.cpu_times()
        mem_info = process.memory_info()

        runtime_ms = float(data.get("runtime_ms", 0.0))
        cpu_time_ms = (
            (cpu_after.user + cpu_after.system)
            - (cpu_before.user + cpu_before.system)
        ) * 1000.0
        rss_mb = mem_info.rss / (1024 * 1024)
        vms_mb = mem_info.vms / (1024 * 1024)

        rows.append((run_id, runtime_ms, cpu_time_ms, rss_mb, vms_mb))

    with filename.open("w", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["run_id", "runtime_ms", "cpu_time_ms", "rss_mb", "vms_mb"])
        writer.writerows(rows)


def main() -> None:
    app = create_app()
    client = TestClient(app)

    run_benchmark(iterations=ITERATIONS, filename=FORWARD_OUTPUT, policy="FORWARD", client=client)
    run_benchmark(iterations=ITERATIONS, filename=BACKWARD_OUTPUT, policy="BACKWARD", client=client)

    print(f"Forward timeline benchmark written to {FORWARD_OUTPUT}")
    print(f"Backward timeline benchmark written to {BACKWARD_OUTPUT}")


if __name__ == "__main__":
    main()
