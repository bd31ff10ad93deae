from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from .exceptions import InvalidWorkloadError
from .models import Process, ScheduleResult

logger = logging.getLogger(__name__)

_OPTIONAL_INTS = ("priority", "deadline", "tickets", "queue")


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.

    Entries with a zero burst time are dropped before they reach a
    scheduling policy.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise InvalidWorkloadError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    kept = [p for p in processes if p.burst_time != 0]
    if len(kept) != len(processes):
        dropped = [p.name for p in processes if p.burst_time == 0]
        logger.warning(f"Dropping zero-burst processes from {path.name}: {', '.join(dropped)}")
    return kept


def save_result(result: ScheduleResult, path: str | Path) -> Path:
    """
    Write the plain-data form of a schedule (results, averages, gantt) as JSON.
    """
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)
    logger.info(f"Wrote {result.algorithm} result to {path}")
    return path


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidWorkloadError(f"{path.name} is not valid JSON: {exc}") from exc

    if not isinstance(raw, Iterable) or isinstance(raw, (str, dict)):
        raise InvalidWorkloadError("JSON workload must be a list of process objects")

    processes: List[Process] = []
    for entry in raw:
        processes.append(_process_from_mapping(entry))

    return processes


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _optional_int(mapping, key: str) -> Optional[int]:
    value = mapping.get(key)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidWorkloadError(f"Invalid {key} {value!r} in entry {mapping!r}") from exc


def _process_from_mapping(mapping) -> Process:
    try:
        # "pid" is accepted for workloads written for older tooling.
        name = str(mapping["name"] if "name" in mapping else mapping["pid"])
        arrival_time = int(mapping["arrival_time"])
        burst_time = int(mapping["burst_time"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidWorkloadError(f"Invalid process entry: {mapping!r}") from exc

    group = mapping.get("group")
    extras = {key: _optional_int(mapping, key) for key in _OPTIONAL_INTS}

    return Process(
        name=name,
        arrival_time=arrival_time,
        burst_time=burst_time,
        group=str(group) if group not in (None, "") else None,
        **extras,
    )
