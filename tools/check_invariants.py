#!/usr/bin/env python3
"""Farm invariant checks against the shipped parameter file."""

import json
import re
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
PARAMS_PATH = ROOT / "config" / "farm_params.json"

REQUIRED_KEYS = (
    "total_funding",
    "period_count",
    "period_length",
    "funding_authority",
    "start_time_bytes",
    "final_period_policy",
    "replay_lookback",
)
ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_schedule(params: dict, errors: list[str]) -> None:
    """Funding must split into whole periods that fit the start encoding."""
    total = params["total_funding"]
    count = params["period_count"]
    length = params["period_length"]
    width = params["start_time_bytes"]

    if not isinstance(total, int) or total <= 0:
        errors.append(f"total_funding must be a positive integer, got {total!r}")
    if not isinstance(count, int) or count <= 0:
        errors.append(f"period_count must be a positive integer, got {count!r}")
    if not isinstance(length, int) or length <= 0:
        errors.append(f"period_length must be a positive integer, got {length!r}")
    if not isinstance(width, int) or width <= 0:
        errors.append(f"start_time_bytes must be a positive integer, got {width!r}")
    if errors:
        return

    if total < count:
        errors.append("total_funding must cover at least one unit per period")
    max_start = 2 ** (8 * width) - 1
    if count * length > max_start:
        errors.append(
            f"schedule of {count} x {length} blocks exceeds the largest "
            f"encodable start block ({max_start})"
        )
    remainder = total % count
    if remainder:
        print(f"Note: {remainder} units of total_funding are not distributable.")


def check() -> int:
    params = load_json(PARAMS_PATH)
    errors: list[str] = []

    missing = [key for key in REQUIRED_KEYS if key not in params]
    for key in missing:
        errors.append(f"farm_params missing key: {key}")

    if not missing:
        check_schedule(params, errors)

        authority = str(params["funding_authority"])
        if not ADDRESS_RE.match(authority):
            errors.append("funding_authority must be a 20-byte hex address")
        elif int(authority, 16) == 0:
            errors.append("funding_authority must not be the zero address")
        if params["final_period_policy"] not in ("clamp", "settle"):
            errors.append(
                f"final_period_policy must be 'clamp' or 'settle', "
                f"got {params['final_period_policy']!r}"
            )
        lookback = params["replay_lookback"]
        if not isinstance(lookback, int) or lookback < 0:
            errors.append(f"replay_lookback must be >= 0, got {lookback!r}")

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print("Invariant check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(check())
