"""Spot account types and the interface a spot exchange provides."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .models import Direction, Order, OrderBook, OrderType, Record


@dataclass
class SpotAsset:
    """Holding of one currency."""

    name: str = ""
    available: float = 0.0
    frozen: float = 0.0
    borrow: float = 0.0


@dataclass
class SpotBalance:
    """Balance of a spot account: the base currency and the quote currency."""

    base: SpotAsset = field(default_factory=SpotAsset)
    quote: SpotAsset = field(default_factory=SpotAsset)

    def add(self, other: SpotBalance) -> None:
        """Add the available, frozen and borrowed amounts of ``other`` in place."""
        for mine, theirs in ((self.base, other.base), (self.quote, other.quote)):
            mine.available += theirs.available
            mine.frozen += theirs.frozen
            mine.borrow += theirs.borrow


class SpotExchange(ABC):
    """A spot exchange."""

    @abstractmethod
    def get_name(self) -> str: ...

    @abstractmethod
    def get_time(self) -> int:
        """Exchange time in milliseconds."""

    @abstractmethod
    def get_balance(self, currency: str) -> SpotBalance: ...

    @abstractmethod
    def get_order_book(self, symbol: str, depth: int) -> OrderBook: ...

    @abstractmethod
    def get_records(
        self, symbol: str, period: str, start: int, end: int, limit: int
    ) -> list[Record]:
        """Candles; ``period`` is minutes or a keyword such as "5m", "4h", "1d"."""

    @abstractmethod
    def place_order(
        self,
        symbol: str,
        direction: Direction,
        order_type: OrderType,
        price: float,
        size: float,
        post_only: bool = False,
        reduce_only: bool = False,
    ) -> Order: ...

    def buy(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        return self.place_order(symbol, Direction.BUY, order_type, price, size)

    def sell(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        return self.place_order(symbol, Direction.SELL, order_type, price, size)

    @abstractmethod
    def get_open_orders(self, symbol: str) -> list[Order]: ...

    @abstractmethod
    def get_history_orders(self, symbol: str) -> list[Order]: ...

    @abstractmethod
    def get_order(self, symbol: str, order_id: str) -> Order: ...

    @abstractmethod
    def cancel_all_orders(self, symbol: str) -> None: ...

    @abstractmethod
    def cancel_order(self, symbol: str, order_id: str) -> Order: ...

    @abstractmethod
    def io(self, name: str, params: str) -> str:
        """Invoke an exchange-specific extra function."""


class SpotExchangeSim(SpotExchange):
    """A simulated spot exchange driven by a backtest."""

    @abstractmethod
    def set_exchange_logger(self, logger) -> None: ...

    @abstractmethod
    def run_event_loop_once(self) -> None:
        """Run one matching round; called by the backtest."""