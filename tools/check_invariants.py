#!/usr/bin/env python3
"""devcred invariant checks against the config artifacts."""

import json
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
PARAMS_PATH = ROOT / "config" / "ledger_params.json"
CATEGORIES_PATH = ROOT / "config" / "skill_categories.json"


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_params(params: dict, errors: list[str]) -> None:
    """Validate point values, the verifier gate, and level bands."""
    points = params.get("points", {})
    for name in ("self_report", "peer_verification", "project_deployment", "course_completion"):
        value = points.get(name)
        if not isinstance(value, int) or value <= 0:
            errors.append(f"points.{name} must be a positive integer, got {value!r}")

    self_report = points.get("self_report", 0)
    threshold = params.get("min_verifier_reputation")
    if not isinstance(threshold, int) or threshold <= 0:
        errors.append(f"min_verifier_reputation must be a positive integer, got {threshold!r}")
    elif isinstance(self_report, int) and self_report > 0 and threshold <= self_report:
        # One self-report alone must not open verification rights.
        errors.append(
            f"min_verifier_reputation ({threshold}) must exceed a single self-report ({self_report})"
        )

    max_len = params.get("max_description_length")
    if not isinstance(max_len, int) or max_len <= 0:
        errors.append(f"max_description_length must be a positive integer, got {max_len!r}")

    bands = params.get("level_thresholds", {})
    order = ("intermediate", "advanced", "expert")
    values = [bands.get(name) for name in order]
    if not all(isinstance(v, int) for v in values):
        errors.append(f"level_thresholds must define integer {', '.join(order)}")
    elif not (0 < values[0] < values[1] < values[2]):
        errors.append(f"level_thresholds must be strictly ascending, got {values}")


def check_categories(table: dict, errors: list[str]) -> None:
    """Category ids must be contiguous from 1 with non-blank unique names."""
    categories = table.get("categories", {})
    if not categories:
        errors.append("skill_categories.json defines no categories")
        return
    try:
        ids = sorted(int(k) for k in categories)
    except ValueError:
        errors.append(f"Category ids must be integers, got {sorted(categories)}")
        return
    if ids != list(range(1, len(ids) + 1)):
        errors.append(f"Category ids must be contiguous from 1, got {ids}")
    names = [name.strip() for name in categories.values() if isinstance(name, str)]
    if len(names) != len(categories) or not all(names):
        errors.append("Every category needs a non-blank name")
    if len(set(names)) != len(names):
        errors.append("Category names must be unique")


def check(params_path: Path = PARAMS_PATH, categories_path: Path = CATEGORIES_PATH) -> int:
    errors: list[str] = []
    check_params(load_json(params_path), errors)
    check_categories(load_json(categories_path), errors)

    if errors:
        for error in errors:
            print(f"FAIL: {error}")
        return 1
    print("All config invariants hold.")
    return 0


if __name__ == "__main__":
    sys.exit(check())
