from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from app.core.config import get_settings
from app.integrations.google.geocoding import GoogleMapsError
from app.integrations.travel import HaversineTravelOracle
from app.scheduler import ErrandTask, GeoPoint, InvalidScheduleInput
from app.services.formatting import render_schedule_text
from app.services.scheduling import SchedulingService, build_travel_oracle

logger = logging.getLogger(__name__)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _parse_origin(value: str) -> GeoPoint:
    try:
        lat, lng = (float(part) for part in value.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"origin must look like LAT,LNG, got {value!r}") from exc
    return GeoPoint(lat=lat, lng=lng)


def load_tasks(path: Path) -> list[ErrandTask]:
    """Read errands from a JSON array; camelCase and snake_case keys are both accepted."""

    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"{path} must contain a JSON array of tasks")
    tasks: list[ErrandTask] = []
    for index, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"task #{index} in {path} is not a JSON object")
        tasks.append(
            ErrandTask(
                task_id=str(item.get("id") or f"task-{index}"),
                title=item.get("title", f"Task {index}"),
                location=GeoPoint(lat=float(item["lat"]), lng=float(item["lng"])),
                duration_minutes=item.get("duration_minutes", item.get("durationMinutes")),
                fixed_time=bool(item.get("fixed_time", item.get("fixedTime", False))),
                must_arrive_by=_parse_datetime(item.get("must_arrive_by", item.get("mustArriveBy"))),
                address=item.get("address"),
            )
        )
    return tasks


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m app.cli", description="Plan a day of errands.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan = subparsers.add_parser("plan", help="order errands and print a timed schedule")
    plan.add_argument("tasks_file", type=Path, help="JSON array of tasks with lat/lng")
    plan.add_argument("--origin", type=_parse_origin, default=None, help="starting point as LAT,LNG")
    plan.add_argument("--start", type=_parse_datetime, default=None, help="ISO timestamp to start from (default: now)")
    plan.add_argument("--policy", choices=["FORWARD", "BACKWARD"], default=None)
    plan.add_argument("--oracle", choices=["haversine", "google"], default="haversine")
    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    if args.oracle == "google":
        oracle = build_travel_oracle(settings.model_copy(update={"travel_oracle": "GOOGLE"}))
    else:
        oracle = HaversineTravelOracle(speed_kmh=settings.fallback_speed_kmh)
    service = SchedulingService(oracle)

    origin = args.origin or GeoPoint(lat=settings.default_origin_lat, lng=settings.default_origin_lng)
    start = args.start or datetime.now().astimezone()
    display_tz = start.tzinfo or timezone.utc

    try:
        tasks = load_tasks(args.tasks_file)
        result, metrics = service.plan(tasks, origin=origin, start_time=start, policy=args.policy)
    except (InvalidScheduleInput, KeyError, TypeError, ValueError, OSError) as exc:
        logger.error("Invalid input: %s", exc)
        return 2
    except GoogleMapsError as exc:
        logger.error("Travel lookup failed: %s", exc)
        return 1

    print(render_schedule_text(result.entries, policy=result.policy, warnings=result.warnings, tz=display_tz))
    logger.info("Metrics: %s", metrics.to_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
