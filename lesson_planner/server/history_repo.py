# server/history_repo.py

from __future__ import annotations

from typing import List, Literal, Optional, Tuple, Union

from pydantic import TypeAdapter

from .errors import StorageUnavailableError
from .schemas import Plan
from .storage import LocalStorage

HISTORY_KEY = "lessonPlanHistory"

SortKey = Literal["timestamp", "class_number", "subject", "date_range"]
SortDirection = Literal["ascending", "descending"]

SORT_KEYS: Tuple[str, ...] = ("timestamp", "class_number", "subject", "date_range")
SORT_DIRECTIONS: Tuple[str, ...] = ("ascending", "descending")

_plans_adapter = TypeAdapter(List[Plan])


def _sort_value(plan: Plan, key: str) -> Union[int, str]:
    if key == "timestamp":
        return plan.timestamp
    return getattr(plan.meta, key)


class HistoryRepo:
    """
    Newest-first list of generated plans, persisted as a whole on every
    change. Nothing is ever pruned.
    """

    def __init__(self, storage: LocalStorage):
        self._storage = storage
        self._plans: List[Plan] = self.load()

    def load(self) -> List[Plan]:
        try:
            text = self._storage.get_item(HISTORY_KEY)
        except StorageUnavailableError:
            return []

        if not text or not text.strip():
            return []

        try:
            return _plans_adapter.validate_json(text)
        except Exception as e:
            print(f"[history_repo] Stored history is unreadable, starting empty: {e}")
            return []

    @property
    def plans(self) -> Tuple[Plan, ...]:
        return tuple(self._plans)

    def __len__(self) -> int:
        return len(self._plans)

    def append(self, plan: Plan) -> List[Plan]:
        """
        Prepend ``plan`` and persist the full list.

        The in-memory list keeps the plan even when the write fails; the
        StorageUnavailableError is re-raised so the caller can warn.
        """
        self._plans = [plan, *self._plans]
        try:
            self._storage.set_item(
                HISTORY_KEY, _plans_adapter.dump_json(self._plans).decode("utf-8")
            )
        except StorageUnavailableError:
            print(f"[history_repo] Plan {plan.id} kept in memory only; history write failed.")
            raise
        return list(self._plans)

    def most_recent_remedial_notes(self) -> Optional[List[str]]:
        if not self._plans:
            return None
        return list(self._plans[0].reflections_and_remedial_plan)

    def get(self, plan_id: str) -> Optional[Plan]:
        for plan in self._plans:
            if plan.id == plan_id:
                return plan
        return None

    def sorted_view(
        self,
        key: SortKey = "timestamp",
        direction: SortDirection = "descending",
    ) -> List[Plan]:
        """
        Stable sort without touching stored order. Equal keys keep their
        stored relative order in both directions.
        """
        if key not in SORT_KEYS:
            raise ValueError(f"unknown sort key: {key}")
        if direction not in SORT_DIRECTIONS:
            raise ValueError(f"unknown sort direction: {direction}")

        # reverse=True keeps stability in Python's sort
        return sorted(
            self._plans,
            key=lambda p: _sort_value(p, key),
            reverse=direction == "descending",
        )
