"""Core market and trading data types: order books, orders, positions, trades."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from itertools import zip_longest

from tabulate import tabulate


class Direction(IntEnum):
    """Side of an order or trade."""

    BUY = 0
    SELL = 1

    def __str__(self) -> str:
        return "Buy" if self is Direction.BUY else "Sell"


class OrderType(IntEnum):
    """Kind of order."""

    MARKET = 0
    LIMIT = 1
    STOP_MARKET = 2
    STOP_LIMIT = 3

    def __str__(self) -> str:
        return {
            OrderType.MARKET: "Market",
            OrderType.LIMIT: "Limit",
            OrderType.STOP_MARKET: "StopMarket",
            OrderType.STOP_LIMIT: "StopLimit",
        }[self]


class OrderStatus(IntEnum):
    """Life-cycle state of an order."""

    CREATED = 0
    REJECTED = 1
    NEW = 2
    PARTIALLY_FILLED = 3
    FILLED = 4
    CANCEL_PENDING = 5
    CANCELLED = 6
    UNTRIGGERED = 7
    TRIGGERED = 8

    def __str__(self) -> str:
        return "".join(part.capitalize() for part in self.name.split("_"))


class WSEvent(IntEnum):
    """Events delivered by streaming market connections."""

    TRADE = 1
    L2_SNAPSHOT = 2
    BALANCE = 3
    ORDER = 4
    POSITION = 5
    ERROR = 6
    DISCONNECTED = 7
    RECONNECTED = 8


@dataclass
class Market:
    """A tradable market, identified by its exchange symbol."""

    symbol: str = ""


@dataclass
class Balance:
    """Account balance of a derivatives account."""

    equity: float = 0.0
    available: float = 0.0
    margin: float = 0.0
    realized_pnl: float = 0.0
    unrealised_pnl: float = 0.0


@dataclass
class Item:
    """One price level of an order book."""

    price: float = 0.0
    amount: float = 0.0


def _fill_levels(levels: list[Item], size: float) -> tuple[list[tuple[float, float]], float]:
    """Walk price levels taking up to ``size``; return (amount, price) fills and what is left."""
    fills: list[tuple[float, float]] = []
    remaining = size
    for level in levels:
        if remaining >= level.amount:
            fills.append((level.amount, level.price))
            remaining -= level.amount
        else:
            fills.append((remaining, level.price))
            remaining = 0.0
        if remaining <= 0:
            break
    return fills, remaining


def _ave_price(levels: list[Item], size: float) -> float:
    fills, remaining = _fill_levels(levels, size)
    total_size = sum(amount for amount, _ in fills)
    total_value = sum(amount * price for amount, price in fills)
    if remaining != 0 or total_size == 0:
        return -1.0
    return total_value / total_size


@dataclass
class OrderBook:
    """Snapshot of an order book; asks ascend, bids descend."""

    symbol: str = ""
    time: datetime | None = None
    asks: list[Item] = field(default_factory=list)
    bids: list[Item] = field(default_factory=list)

    def ask(self) -> Item:
        """Best ask, or an empty level when there is none."""
        return self.asks[0] if self.asks else Item()

    def bid(self) -> Item:
        """Best bid, or an empty level when there is none."""
        return self.bids[0] if self.bids else Item()

    def ask_price(self) -> float:
        return self.asks[0].price if self.asks else 0.0

    def bid_price(self) -> float:
        return self.bids[0].price if self.bids else 0.0

    def ask_ave_price(self, size: float) -> float:
        """Average price to buy ``size`` from the asks, or -1 if the book is too thin."""
        return _ave_price(self.asks, size)

    def bid_ave_price(self, size: float) -> float:
        """Average price to sell ``size`` into the bids, or -1 if the book is too thin."""
        return _ave_price(self.bids, size)

    def match_orderbook(self, size: float, ob: list[Item]) -> tuple[float, float]:
        """Match ``size`` against the levels ``ob``; return (filled size, average price).

        Returns (0.0, 0.0) when the levels cannot fill the whole size.
        """
        fills, remaining = _fill_levels(ob, size)
        if remaining != 0:
            return 0.0, 0.0
        filled = sum(amount for amount, _ in fills)
        value = sum(amount * price for amount, price in fills)
        if filled == 0:
            return filled, 0.0
        return filled, value / filled

    def match_bids(self, size: float) -> tuple[float, float]:
        return self.match_orderbook(size, self.bids)

    def match_asks(self, size: float) -> tuple[float, float]:
        return self.match_orderbook(size, self.asks)

    def price(self) -> float:
        """Middle of best bid and best ask."""
        return (self.bid().price + self.ask().price) / 2.0

    def table(self) -> str:
        """Render the book as a text table of asks and bids side by side."""
        rows = [
            [
                ask.price if ask else "",
                ask.amount if ask else "",
                bid.price if bid else "",
                bid.amount if bid else "",
            ]
            for ask, bid in zip_longest(self.asks, self.bids)
        ]
        return tabulate(rows, headers=["ask price", "ask amount", "bid price", "bid amount"])


@dataclass
class Record:
    """One candlestick."""

    symbol: str = ""
    timestamp: datetime | None = None
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: float = 0.0


@dataclass
class Trade:
    """A public trade; ``ts`` is unix time in milliseconds."""

    id: str = ""
    direction: Direction = Direction.BUY
    price: float = 0.0
    amount: float = 0.0
    ts: int = 0
    symbol: str = ""


@dataclass
class Order:
    """An order placed on an exchange."""

    id: str = ""
    client_oid: str = ""
    symbol: str = ""
    time: datetime | None = None
    price: float = 0.0
    stop_px: float = 0.0
    amount: float = 0.0
    avg_price: float = 0.0
    filled_amount: float = 0.0
    direction: Direction = Direction.BUY
    type: OrderType = OrderType.MARKET
    post_only: bool = False
    reduce_only: bool = False
    commission: float = 0.0
    pnl: float = 0.0
    update_time: datetime | None = None
    status: OrderStatus = OrderStatus.CREATED

    def is_open(self) -> bool:
        """True while the order can still trade."""
        return self.status in (
            OrderStatus.CREATED,
            OrderStatus.NEW,
            OrderStatus.PARTIALLY_FILLED,
        )


@dataclass
class Position:
    """A position; positive size is long, negative is short."""

    symbol: str = ""
    open_time: datetime | None = None
    open_price: float = 0.0
    size: float = 0.0
    avg_price: float = 0.0
    profit: float = 0.0

    def side(self) -> Direction:
        return Direction.SELL if self.size < 0 else Direction.BUY

    def is_open(self) -> bool:
        return self.size != 0

    def is_long(self) -> bool:
        return self.size > 0

    def is_short(self) -> bool:
        return self.size < 0


@dataclass
class LogStats:
    """Balance and equity of one account at a logged moment."""

    balance: float = 0.0
    equity: float = 0.0


@dataclass
class LogItem:
    """One entry of a backtest log."""

    time: datetime | None = None
    raw_time: datetime | None = None
    prices: list[float] = field(default_factory=list)
    stats: list[LogStats] = field(default_factory=list)

    def total_equity(self) -> float:
        return sum(stat.equity for stat in self.stats)