"""Incrementally maintained order book fed by snapshot and update messages."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from itertools import islice

from sortedcontainers import SortedDict

from .models import Item, OrderBook


def _load(levels: Iterable[Sequence[float]]) -> SortedDict:
    book = SortedDict()
    for price, amount in levels:
        book[price] = amount
    return book


def _apply(book: SortedDict, levels: Iterable[Sequence[float]]) -> None:
    for price, amount in levels:
        if amount == 0:
            book.pop(price, None)
        else:
            book[price] = amount


class DepthOrderBook:
    """Order book of one symbol, kept sorted by price."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        self._asks = SortedDict()
        self._bids = SortedDict()

    def update(
        self,
        event: str,
        asks: Iterable[Sequence[float]],
        bids: Iterable[Sequence[float]],
    ) -> None:
        """Apply a "snapshot" (replace all levels) or an "update" (amount 0 removes a level)."""
        if event == "snapshot":
            self._asks = _load(asks)
            self._bids = _load(bids)
        elif event == "update":
            _apply(self._asks, asks)
            _apply(self._bids, bids)

    def get_order_book(self, depth: int) -> OrderBook:
        """Best ``depth`` levels of each side; a non-empty side gives at least one."""
        count = max(depth, 1)
        asks = [Item(p, self._asks[p]) for p in islice(self._asks.keys(), count)]
        bids = [Item(p, self._bids[p]) for p in islice(reversed(self._bids.keys()), count)]
        return OrderBook(symbol=self.symbol, asks=asks, bids=bids)