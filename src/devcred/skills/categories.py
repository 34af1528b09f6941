"""Skill category table — loads, validates, and queries the closed category set.

Categories are identified by small contiguous integers starting at 1.
The table and SkillCategory are the only places the category count is
defined; widening the ledger means widening both.

Usage:
    table = SkillCategoryTable.from_config_dir(Path("config"))
    assert table.is_valid(2)
    table.name(2)   # "DeFi Protocols"
    table.name(99)  # "Unknown Category"
"""

from __future__ import annotations

import enum
import json
from pathlib import Path
from typing import Any

UNKNOWN_CATEGORY_NAME = "Unknown Category"


class SkillCategoryTable:
    """The valid category range and its display names."""

    CATEGORIES_FILENAME = "skill_categories.json"

    def __init__(self, table_data: dict[str, Any]) -> None:
        self._data = table_data
        raw = table_data.get("categories", {})
        self._validate(raw)
        self._names: dict[int, str] = {
            int(category_id): name for category_id, name in raw.items()
        }

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> SkillCategoryTable:
        """Load the table from skill_categories.json.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the table is structurally invalid.
        """
        path = config_dir / cls.CATEGORIES_FILENAME
        if not path.exists():
            raise FileNotFoundError(f"Skill categories not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(data)

    @classmethod
    def from_enum(cls, categories: type[enum.IntEnum]) -> SkillCategoryTable:
        """Build a table from an IntEnum whose members have display_name."""
        return cls({
            "version": "builtin",
            "categories": {
                str(member.value): member.display_name for member in categories
            },
        })

    def _validate(self, raw: Any) -> None:
        if "version" not in self._data:
            raise ValueError("Skill categories missing 'version' field")
        if not isinstance(raw, dict) or not raw:
            raise ValueError("Skill categories 'categories' must be a non-empty dict")

        ids: list[int] = []
        for category_id, name in raw.items():
            try:
                ids.append(int(category_id))
            except (TypeError, ValueError):
                raise ValueError(f"Invalid category id: {category_id!r}") from None
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Invalid name for category {category_id}: {name!r}")

        if sorted(ids) != list(range(1, len(ids) + 1)):
            raise ValueError(
                f"Category ids must be contiguous from 1, got {sorted(ids)}"
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_valid(self, category: int) -> bool:
        """Range check applied on every write."""
        if isinstance(category, bool) or not isinstance(category, int):
            return False
        return 1 <= category <= len(self._names)

    def name(self, category: int) -> str:
        """Display name, or the unknown label for out-of-range values."""
        return self._names.get(category, UNKNOWN_CATEGORY_NAME)

    def ids(self) -> list[int]:
        return sorted(self._names)

    def items(self) -> list[tuple[int, str]]:
        return [(category_id, self._names[category_id]) for category_id in self.ids()]

    @property
    def max_category(self) -> int:
        return len(self._names)

    @property
    def version(self) -> str:
        return str(self._data["version"])

    def __len__(self) -> int:
        return len(self._names)
