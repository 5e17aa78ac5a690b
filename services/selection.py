# services/selection.py
from typing import Iterable, List, Set


class SelectionSet:
    """Order numbers picked for the next batch action, kept in pick order."""

    def __init__(self):
        self._ids: List[str] = []

    def __contains__(self, order_number: str) -> bool:
        return order_number in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def ids(self) -> List[str]:
        return list(self._ids)

    def toggle(self, order_number: str) -> bool:
        """Flips membership; returns True when the id is selected afterwards."""
        if order_number in self._ids:
            self._ids.remove(order_number)
            return False
        self._ids.append(order_number)
        return True

    def select_all(self, selectable: Iterable[str]) -> None:
        self._ids = list(dict.fromkeys(selectable))

    def clear(self) -> None:
        self._ids = []

    def retain(self, eligible: Set[str]) -> List[str]:
        """Drops every id not in eligible; returns the ids that were dropped."""
        dropped = [i for i in self._ids if i not in eligible]
        if dropped:
            self._ids = [i for i in self._ids if i in eligible]
        return dropped
