"""Policy resolver — loads ledger parameters and the category table from config.

Two JSON files drive the ledger:
- ledger_params.json: point values, verifier threshold, level bands.
- skill_categories.json: the closed category table (id -> display name).

Usage:
    resolver = PolicyResolver.from_config_dir(Path("config"))
    resolver.self_report_points()        # 10
    resolver.min_verifier_reputation()   # 50
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from devcred.models.skill import SkillCategory
from devcred.skills.categories import SkillCategoryTable


DEFAULT_PARAMS: dict[str, Any] = {
    "version": "default",
    "points": {
        "self_report": 10,
        "peer_verification": 5,
        "project_deployment": 25,
        "course_completion": 15,
    },
    "min_verifier_reputation": 50,
    "max_description_length": 256,
    "level_thresholds": {
        "intermediate": 26,
        "advanced": 76,
        "expert": 151,
    },
}


class PolicyResolver:
    """Resolves ledger policy from parsed config data."""

    PARAMS_FILENAME = "ledger_params.json"
    CATEGORIES_FILENAME = "skill_categories.json"

    def __init__(
        self,
        params: dict[str, Any],
        categories: Optional[SkillCategoryTable] = None,
    ) -> None:
        self._params = params
        self._categories = categories or SkillCategoryTable.from_enum(SkillCategory)
        self._validate()

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load policy from a config directory.

        Raises:
            FileNotFoundError: If ledger_params.json does not exist.
            ValueError: If either file is structurally invalid.
        """
        params_path = config_dir / cls.PARAMS_FILENAME
        if not params_path.exists():
            raise FileNotFoundError(f"Ledger params not found: {params_path}")
        with params_path.open("r", encoding="utf-8") as f:
            params = json.load(f)

        categories: Optional[SkillCategoryTable] = None
        if (config_dir / cls.CATEGORIES_FILENAME).exists():
            categories = SkillCategoryTable.from_config_dir(config_dir)
        return cls(params, categories)

    @classmethod
    def default(cls) -> PolicyResolver:
        """Resolver over the built-in reference parameters."""
        return cls(json.loads(json.dumps(DEFAULT_PARAMS)))

    def _validate(self) -> None:
        points = self._params.get("points", {})
        if not isinstance(points, dict):
            raise ValueError("Ledger params 'points' must be a dict")
        for name in ("self_report", "peer_verification"):
            value = points.get(name, DEFAULT_PARAMS["points"][name])
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"points.{name} must be a positive integer, got {value!r}")

        threshold = self.min_verifier_reputation()
        if not isinstance(threshold, int) or threshold <= 0:
            raise ValueError(
                f"min_verifier_reputation must be a positive integer, got {threshold!r}"
            )
        self_report = points.get("self_report", DEFAULT_PARAMS["points"]["self_report"])
        if threshold <= self_report:
            # One self-report alone must not open verification rights.
            raise ValueError(
                f"min_verifier_reputation ({threshold}) must exceed a single "
                f"self-report ({self_report})"
            )

        max_len = self.max_description_length()
        if not isinstance(max_len, int) or max_len <= 0:
            raise ValueError(
                f"max_description_length must be a positive integer, got {max_len!r}"
            )

        intermediate, advanced, expert = self.level_thresholds()
        if not (0 < intermediate < advanced < expert):
            raise ValueError(
                "level_thresholds must be strictly ascending and positive: "
                f"{intermediate}, {advanced}, {expert}"
            )

    # ------------------------------------------------------------------
    # Point values
    # ------------------------------------------------------------------

    def _points(self) -> dict[str, int]:
        return {**DEFAULT_PARAMS["points"], **self._params.get("points", {})}

    def self_report_points(self) -> int:
        return self._points()["self_report"]

    def peer_verification_points(self) -> int:
        return self._points()["peer_verification"]

    def reserved_points(self, source: str) -> int:
        """Point value reserved for a future source (e.g. project_deployment).

        Raises:
            KeyError: If no value is configured for the source.
        """
        points = self._points()
        if source not in points:
            raise KeyError(f"No point value configured for source: {source}")
        return points[source]

    # ------------------------------------------------------------------
    # Thresholds
    # ------------------------------------------------------------------

    def min_verifier_reputation(self) -> int:
        return self._params.get(
            "min_verifier_reputation", DEFAULT_PARAMS["min_verifier_reputation"],
        )

    def max_description_length(self) -> int:
        return self._params.get(
            "max_description_length", DEFAULT_PARAMS["max_description_length"],
        )

    def level_thresholds(self) -> tuple[int, int, int]:
        """Lower bounds of the intermediate, advanced, and expert bands."""
        bands = {
            **DEFAULT_PARAMS["level_thresholds"],
            **self._params.get("level_thresholds", {}),
        }
        return bands["intermediate"], bands["advanced"], bands["expert"]

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @property
    def categories(self) -> SkillCategoryTable:
        return self._categories

    def version(self) -> str:
        return str(self._params.get("version", "unversioned"))
