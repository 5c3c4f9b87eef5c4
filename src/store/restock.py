# restock advisor: reorder suggestions from a customer's order rhythm
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Mapping, Protocol

from store.catalog import CatalogStore
from store.ledger import OrderLedger
from store.models import OrderHistoryItem, Product, RestockDue


class HistorySource(Protocol):
    def items_for(self, user_id: str) -> Iterable[OrderHistoryItem]: ...


class LedgerHistory:
    """History derived from the customer's orders in the ledger."""

    def __init__(self, ledger: OrderLedger) -> None:
        self._ledger = ledger

    def items_for(self, user_id: str) -> Iterable[OrderHistoryItem]:
        return self._ledger.history_for(user_id)


class StaticHistory:
    """Fixed per-customer history, e.g. orders placed before this session."""

    def __init__(self, items: Mapping[str, Iterable[OrderHistoryItem]]) -> None:
        self._items = {uid: list(rows) for uid, rows in items.items()}

    def items_for(self, user_id: str) -> Iterable[OrderHistoryItem]:
        return list(self._items.get(user_id, []))


class CombinedHistory:
    def __init__(self, *sources: HistorySource) -> None:
        self._sources = sources

    def items_for(self, user_id: str) -> Iterable[OrderHistoryItem]:
        for source in self._sources:
            yield from source.items_for(user_id)


class RestockAdvisor:
    """
    Flags a product once the time since its last order exceeds the
    customer's mean gap between orders of it. A product needs at least two
    distinct order times before it can be suggested.
    """

    def __init__(
        self,
        history: HistorySource,
        catalog: CatalogStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._history = history
        self._catalog = catalog
        self._clock = clock

    def _order_times(self, user_id: str) -> Dict[str, List[datetime]]:
        times: Dict[str, set] = defaultdict(set)
        for item in self._history.items_for(user_id):
            times[item.product_id].add(item.order_date)
        return {pid: sorted(ts) for pid, ts in times.items()}

    def due_in(self, user_id: str) -> List[RestockDue]:
        """Remaining time per product with enough history, catalog order."""
        now = self._clock()
        order_times = self._order_times(user_id)

        result: List[RestockDue] = []
        for product in self._catalog.all():
            dates = order_times.get(product.id)
            if not dates or len(dates) < 2:
                continue
            total_gap = sum(
                (later - earlier for earlier, later in zip(dates, dates[1:])),
                timedelta(),
            )
            mean_gap = total_gap / (len(dates) - 1)
            since_last = now - dates[-1]
            result.append(
                RestockDue(
                    product_id=product.id,
                    mean_gap=mean_gap,
                    remaining=mean_gap - since_last,
                )
            )
        return result

    def suggestions(self, user_id: str) -> List[Product]:
        return [
            self._catalog.get(due.product_id)
            for due in self.due_in(user_id)
            if due.remaining < timedelta()
        ]
