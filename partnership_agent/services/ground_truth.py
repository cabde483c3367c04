"""
Ground-truth answers for response evaluation, loaded from CSV.

Columns: ``user_prompt, expected_output, category, module``.
"""

from __future__ import annotations

import csv
from pathlib import Path

from pydantic import BaseModel

from partnership_agent.core.config import settings
from partnership_agent.utils.logging import get_logger

logger = get_logger("partnership_agent.services.ground_truth")

DEFAULT_GROUND_TRUTH_PATH = Path(__file__).resolve().parents[1] / "data" / "ground_truth.csv"


class GroundTruthItem(BaseModel):
    user_prompt: str
    expected_output: str
    category: str = ""
    module: str = ""


class GroundTruthStore:
    def __init__(self, items: list[GroundTruthItem] | None = None):
        self.items: list[GroundTruthItem] = list(items or [])

    @classmethod
    def from_csv(cls, path: str | Path | None = None) -> "GroundTruthStore":
        csv_path = Path(path or settings.ground_truth_path or DEFAULT_GROUND_TRUTH_PATH)
        if not csv_path.exists():
            logger.warning("[EVAL] Ground truth file not found: %s", csv_path)
            return cls()

        items: list[GroundTruthItem] = []
        with csv_path.open(newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                prompt = (row.get("user_prompt") or "").strip()
                expected = (row.get("expected_output") or "").strip()
                if not prompt or not expected:
                    continue
                items.append(
                    GroundTruthItem(
                        user_prompt=prompt,
                        expected_output=expected,
                        category=(row.get("category") or "").strip(),
                        module=(row.get("module") or "").strip(),
                    )
                )
        logger.info("[EVAL] Loaded %d ground truth items from %s", len(items), csv_path)
        return cls(items)

    def expected_output(self, user_prompt: str) -> str | None:
        """
        Expected answer for ``user_prompt``: case-insensitive exact match
        first, then the first item where either prompt contains the other.
        """
        if not user_prompt or not user_prompt.strip():
            return None
        prompt = user_prompt.strip().lower()

        for item in self.items:
            if item.user_prompt.lower() == prompt:
                return item.expected_output
        for item in self.items:
            candidate = item.user_prompt.lower()
            if candidate in prompt or prompt in candidate:
                return item.expected_output
        return None

    def by_module(self, module: str) -> list[GroundTruthItem]:
        return [i for i in self.items if i.module.lower() == module.lower()]
