"""Simulated spot exchange for backtests, matching against recorded order books."""

from __future__ import annotations

import copy
import json
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from .ids import gen_order_id
from .models import Direction, Item, Order, OrderBook, OrderStatus, OrderType, Record, WSEvent
from .spot import SpotAsset, SpotBalance, SpotExchangeSim

_EVENT_KEY = "event"
_EVENT_ORDER = "order"
_EVENT_DEAL = "deal"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_log = logging.getLogger(__name__)


class _Data(Protocol):
    def get_order_book_by_ns(self, symbol: str, ns: int) -> OrderBook: ...


class _Backtest(Protocol):
    def get_time(self) -> datetime: ...


def _unix_nanos(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return (moment - _EPOCH) // timedelta(microseconds=1) * 1000


def _asset_from_json(data: Any) -> SpotAsset:
    if not isinstance(data, dict):
        raise ValueError(f"cannot read an asset from {data!r}")
    fields = {str(k).lower(): v for k, v in data.items()}
    return SpotAsset(
        name=str(fields.get("name", "")),
        available=float(fields.get("available", 0.0)),
        frozen=float(fields.get("frozen", 0.0)),
        borrow=float(fields.get("borrow", 0.0)),
    )


def _balance_from_json(text: str) -> SpotBalance:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"cannot read a balance from {text!r}")
    fields = {str(k).lower(): v for k, v in data.items()}
    return SpotBalance(
        base=_asset_from_json(fields.get("base", {})),
        quote=_asset_from_json(fields.get("quote", {})),
    )


def _match_levels(
    size: float, levels: list[Item], crosses: Callable[[float], bool]
) -> list[tuple[float, float]] | None:
    """Fill ``size`` from levels whose price crosses; None if they cannot fill it all."""
    fills: list[tuple[float, float]] = []
    remaining = size
    for level in levels:
        if not crosses(level.price):
            break
        if remaining >= level.amount:
            fills.append((level.amount, level.price))
            remaining -= level.amount
        else:
            fills.append((remaining, level.price))
            remaining = 0.0
        if remaining <= 0:
            break
    if remaining != 0:
        return None
    return fills


def _fill_result(
    fills: list[tuple[float, float]] | None, price: float, size: float, immediate: bool
) -> tuple[float, float]:
    if fills is None:
        return 0.0, 0.0
    if not immediate:
        return size, price
    filled = sum(amount for amount, _ in fills)
    if filled == 0:
        return filled, 0.0
    return filled, sum(amount * p for amount, p in fills) / filled


class SpotSim(SpotExchangeSim):
    """Simulated spot exchange holding one base and one quote balance."""

    def __init__(
        self,
        name: str,
        data: _Data | None,
        init_balance: SpotBalance,
        maker_fee_rate: float,
        taker_fee_rate: float,
    ) -> None:
        self.name = name
        self.data = data
        self.maker_fee_rate = maker_fee_rate
        self.taker_fee_rate = taker_fee_rate
        self.init_balance = copy.deepcopy(init_balance)
        self.balance = copy.deepcopy(init_balance)
        self.backtest: _Backtest | None = None
        self.exchange_logger: Any = None
        self.orders: dict[str, Order] = {}
        self.open_orders: dict[str, Order] = {}
        self.history_orders: dict[str, Order] = {}
        self._listeners: dict[WSEvent, list[Callable[[list[Order]], None]]] = defaultdict(list)

    def get_name(self) -> str:
        return self.name + "_spot_sim"

    def _now(self) -> datetime:
        if self.backtest is None:
            raise RuntimeError("no backtest set")
        return self.backtest.get_time()

    def get_time(self) -> int:
        """Backtest time in milliseconds."""
        return _unix_nanos(self._now()) // 1_000_000

    def get_balance(self, currency: str) -> SpotBalance:
        return self.balance

    def get_order_book(self, symbol: str, depth: int) -> OrderBook:
        if self.data is None:
            raise RuntimeError("no data set")
        return self.data.get_order_book_by_ns(symbol, _unix_nanos(self._now()))

    def _order_book(self) -> OrderBook:
        return self.get_order_book("", 0)

    def get_records(
        self, symbol: str, period: str, start: int, end: int, limit: int
    ) -> list[Record]:
        return []

    def buy(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        return self.place_order(symbol, Direction.BUY, order_type, price, size)

    def sell(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        return self.place_order(symbol, Direction.SELL, order_type, price, size)

    def place_order(
        self,
        symbol: str,
        direction: Direction,
        order_type: OrderType,
        price: float,
        size: float,
        post_only: bool = False,
        reduce_only: bool = False,
    ) -> Order:
        """Place an order and match it at once against the current order book."""
        if size == 0:
            raise ValueError("size is zero")
        order_id = gen_order_id()
        now = self._now()
        order = Order(
            id=order_id,
            symbol=symbol,
            time=now,
            price=price,
            amount=size,
            direction=direction,
            type=order_type,
            post_only=post_only,
            reduce_only=reduce_only,
            update_time=now,
            status=OrderStatus.NEW,
        )
        if self.exchange_logger is not None:
            self.exchange_logger.infow(
                "PlaceOrder",
                "symbol", symbol,
                "direction", direction,
                "orderType", str(order_type),
                "price", price,
                "size", size,
                "params", {"post_only": post_only, "reduce_only": reduce_only},
            )
        try:
            self._match_order(order, True)
        except ValueError as exc:
            if self.exchange_logger is not None:
                self.exchange_logger.error(exc)
            raise

        if order.is_open():
            self.open_orders[order_id] = order
        else:
            self.history_orders[order_id] = order
        self.orders[order_id] = order
        self._log_order_info("Place order", _EVENT_ORDER, order)
        return order

    def _match_order(self, order: Order, immediate: bool) -> bool:
        if order.type == OrderType.MARKET:
            return self._match_market_order(order)
        if order.type == OrderType.LIMIT:
            return self._match_limit_order(order, immediate)
        return False

    def _match_market_order(self, order: Order) -> bool:
        if not order.is_open():
            raise ValueError("order is closed")
        ob = self._order_book()
        size = order.amount
        if order.direction == Direction.BUY:
            price = ob.ask_ave_price(size)
            if price <= 0:
                raise ValueError("size is bigger than orderbook")
            value = size * price
            fee = size * self.taker_fee_rate
            if fee + value > self.balance.quote.available:
                raise ValueError("no more money")
            order.filled_amount = size
            order.avg_price = price
            order.commission += fee
            self.balance.quote.available -= value
            self.balance.base.available += size - fee
            order.status = OrderStatus.FILLED
        elif order.direction == Direction.SELL:
            price = ob.bid_ave_price(size)
            if price <= 0:
                raise ValueError("size is bigger than orderbook")
            value = size * price
            fee = value * self.taker_fee_rate
            if fee + size > self.balance.quote.available:
                raise ValueError("no more stock")
            order.filled_amount = size
            order.avg_price = price
            order.commission += fee
            self.balance.base.available -= size
            self.balance.quote.available += value - fee
            order.status = OrderStatus.FILLED
        order.update_time = self._now()
        return True

    def _match_limit_order(self, order: Order, immediate: bool) -> bool:
        if not order.is_open():
            return False
        ob = self._order_book()
        rate = self.taker_fee_rate if immediate else self.maker_fee_rate
        if order.direction == Direction.BUY:
            if order.price < ob.ask_price():
                return False
            if immediate and order.post_only:
                order.status = OrderStatus.REJECTED
                return False
            if order.price * order.amount > self.balance.quote.available:
                raise ValueError("no more money")
            size, price = self._match_ask(order.price, order.amount, ob.asks, immediate)
            if price <= 0:
                raise ValueError("size is bigger than orderbook")
            value = size * price
            fee = size * rate
            order.filled_amount = size
            order.avg_price = price
            order.commission += fee
            self.balance.quote.available -= value
            self.balance.base.available += size - fee
            if size < order.amount:
                order.status = OrderStatus.PARTIALLY_FILLED
                self.balance.quote.frozen = (order.amount - size) * order.price
            else:
                order.status = OrderStatus.FILLED
        else:
            if order.price > ob.bid_price():
                return False
            if immediate and order.post_only:
                order.status = OrderStatus.REJECTED
                return False
            if order.amount > self.balance.base.available:
                raise ValueError("no more stock")
            size, price = self._match_bid(order.price, order.amount, ob.bids, immediate)
            if price <= 0:
                raise ValueError("size is bigger than orderbook")
            value = size * price
            fee = value * rate
            order.filled_amount = size
            order.avg_price = price
            order.commission += fee
            self.balance.base.available -= size
            self.balance.quote.available += value - fee
            if size < order.amount:
                order.status = OrderStatus.PARTIALLY_FILLED
                self.balance.base.frozen = order.amount - size
            else:
                order.status = OrderStatus.FILLED
        order.update_time = self._now()
        return True

    @staticmethod
    def _match_ask(
        price: float, size: float, asks: list[Item], immediate: bool
    ) -> tuple[float, float]:
        fills = _match_levels(size, asks, lambda level: price >= level)
        return _fill_result(fills, price, size, immediate)

    @staticmethod
    def _match_bid(
        price: float, size: float, bids: list[Item], immediate: bool
    ) -> tuple[float, float]:
        fills = _match_levels(size, bids, lambda level: price <= level)
        return _fill_result(fills, price, size, immediate)

    def get_open_orders(self, symbol: str) -> list[Order]:
        return [o for o in self.open_orders.values() if o.symbol == symbol]

    def get_history_orders(self, symbol: str) -> list[Order]:
        return [o for o in self.history_orders.values() if o.symbol == symbol]

    def get_order(self, symbol: str, order_id: str) -> Order:
        try:
            return self.orders[order_id]
        except KeyError:
            raise KeyError("not found") from None

    def cancel_all_orders(self, symbol: str) -> None:
        """Cancel every open order."""
        cancelled: list[str] = []
        for order_id, order in self.open_orders.items():
            if not order.is_open():
                _log.warning("Order error: %r", order)
                continue
            order.status = OrderStatus.CANCELLED
            order.update_time = self._now()
            cancelled.append(order_id)
        for order_id in cancelled:
            del self.open_orders[order_id]
            order = self.orders.get(order_id)
            if order is not None:
                self._log_order_info("Cancel order", _EVENT_ORDER, order)

    def cancel_order(self, symbol: str, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise KeyError("not found")
        if not order.is_open():
            raise ValueError("status error")
        order.status = OrderStatus.CANCELLED
        order.update_time = self._now()
        self.open_orders.pop(order_id, None)
        self._log_order_info("Cancel order", _EVENT_ORDER, order)
        return order

    def io(self, name: str, params: str) -> str:
        """Extra functions; "AddBalance" adds a JSON-encoded balance to the account."""
        if name == "AddBalance":
            self.balance.add(_balance_from_json(params))
        return ""

    def set_backtest(self, backtest: _Backtest) -> None:
        self.backtest = backtest

    def set_exchange_logger(self, logger: Any) -> None:
        self.exchange_logger = logger

    def on_order(self, callback: Callable[[list[Order]], None]) -> None:
        """Call ``callback`` with the orders matched in each event loop round."""
        self._listeners[WSEvent.ORDER].append(callback)

    def run_event_loop_once(self) -> None:
        """Match open orders; the error of the last order tried, if any, is raised."""
        last_error: ValueError | None = None
        for order in list(self.open_orders.values()):
            try:
                matched = self._match_order(order, False)
                last_error = None
            except ValueError as exc:
                last_error = exc
                continue
            if matched:
                self._log_order_info("Match order", _EVENT_DEAL, order)
                for callback in self._listeners[WSEvent.ORDER]:
                    callback([order])
        if last_error is not None:
            raise last_error

    def _log_order_info(self, msg: str, event: str, order: Order) -> None:
        if self.exchange_logger is None:
            return
        ob = self._order_book()
        base_balance = self.balance.base.available + self.balance.base.frozen
        quote_balance = self.balance.quote.available + self.balance.quote.frozen
        self.exchange_logger.infow(
            msg,
            _EVENT_KEY, event,
            "order", order,
            "orderbook", ob,
            "balance", base_balance * ob.price() + quote_balance,
            "balances", [base_balance, quote_balance],
        )