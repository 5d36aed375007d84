"""Simulated derivatives exchange for backtests, matching against recorded order books."""

from __future__ import annotations

import dataclasses
import logging
import math
from datetime import datetime
from typing import Any, Protocol

from .ids import gen_order_id
from .models import Balance, Direction, Order, OrderBook, OrderStatus, OrderType, Position

_EVENT_KEY = "event"
_EVENT_ORDER = "order"

_log = logging.getLogger(__name__)


class _Data(Protocol):
    def get_order_book(self) -> OrderBook | None: ...


class _Backtest(Protocol):
    def get_time(self) -> datetime: ...


def calc_pnl(
    side: Direction,
    position_size: float,
    entry_price: float,
    exit_price: float,
    is_forward_contract: bool,
) -> float:
    """Profit of closing ``position_size`` opened at ``entry_price`` at ``exit_price``."""
    if position_size == 0:
        return 0.0
    if is_forward_contract:
        if side == Direction.BUY:
            return position_size * (exit_price - entry_price)
        return position_size * (entry_price - exit_price)
    if side == Direction.BUY:
        return position_size * (1 / entry_price - 1 / exit_price)
    return position_size * (1 / exit_price - 1 / entry_price)


def _ratio(numerator: float, denominator: float) -> float:
    if denominator:
        return numerator / denominator
    if numerator == 0:
        return math.nan
    return math.copysign(math.inf, numerator)


class GenerateSim:
    """Generic simulated exchange; one-way or dual-side positions, forward or inverse contracts."""

    def __init__(
        self,
        data: _Data | None,
        cash: float,
        maker_fee_rate: float,
        taker_fee_rate: float,
        is_forward_contract: bool,
        dual_side_position: bool = False,
    ) -> None:
        self.data = data
        self.balance = cash
        self.maker_fee_rate = maker_fee_rate
        self.taker_fee_rate = taker_fee_rate
        self.is_forward_contract = is_forward_contract
        self.is_dual_side_position = dual_side_position
        self.orders: dict[str, Order] = {}
        self.open_orders: dict[str, Order] = {}
        self.history_orders: dict[str, Order] = {}
        self.positions: dict[str, list[Position]] = {}
        self.total_fee = 0.0
        self.short_cnt = 0.0
        self.short_win_cnt = 0.0
        self.long_cnt = 0.0
        self.long_win_cnt = 0.0
        self.position_cnt = 0.0
        self.position_win_cnt = 0.0
        self.backtest: _Backtest | None = None
        self.exchange_logger: Any = None

    def get_name(self) -> str:
        return "generate"

    def get_time(self) -> int:
        """Backtest time in milliseconds."""
        if self.backtest is None:
            raise RuntimeError("no backtest set")
        moment = self.backtest.get_time()
        return int(moment.timestamp() * 1000)

    def set_data(self, data: _Data) -> None:
        self.data = data

    def _order_book(self) -> OrderBook:
        if self.data is None:
            raise RuntimeError("no data set")
        return self.data.get_order_book()

    def get_balance(self, symbol: str) -> Balance:
        """Available cash, and equity including the unrealised profit of the symbol's position."""
        ob = self._order_book()
        pnl = 0.0
        for pos in self._get_position(symbol):
            side = pos.side()
            price = ob.ask_price() if side == Direction.BUY else ob.bid_price()
            pnl = calc_pnl(side, abs(pos.size), pos.avg_price, price, self.is_forward_contract)
        return Balance(equity=self.balance + pnl, available=self.balance)

    def get_order_book(self, symbol: str, depth: int) -> OrderBook:
        return self._order_book()

    def _log_action(self, action: str, price: float, size: float) -> None:
        ob = self.data.get_order_book() if self.data is not None else None
        moment = ob.time if ob is not None and ob.time is not None else datetime.now()
        _log.info("%s %s %s %s", moment.isoformat(), action, price, size)

    def open_long(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        self._log_action("OpenLong", price, size)
        return self.place_order(symbol, Direction.BUY, order_type, price, size)

    def open_short(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        self._log_action("OpenShort", price, size)
        return self.place_order(symbol, Direction.SELL, order_type, price, size)

    def close_long(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        self._log_action("CloseLong", price, size)
        return self.place_order(symbol, Direction.SELL, order_type, price, size, reduce_only=True)

    def close_short(self, symbol: str, order_type: OrderType, price: float, size: float) -> Order:
        self._log_action("CloseShort", price, size)
        return self.place_order(symbol, Direction.BUY, order_type, price, size, reduce_only=True)

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
        ob = self._order_book()
        order = Order(
            id=order_id,
            symbol=symbol,
            time=ob.time,
            price=price,
            amount=size,
            direction=direction,
            type=order_type,
            post_only=post_only,
            reduce_only=reduce_only,
            update_time=ob.time,
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

    def _match_order(self, order: Order, immediate: bool) -> None:
        if order.type == OrderType.MARKET:
            self._match_market_order(order)
        elif order.type == OrderType.LIMIT:
            self._match_limit_order(order, immediate)

    def _fee(self, size: float, price: float) -> float:
        if self.is_forward_contract:
            return size * price * self.taker_fee_rate
        return size / price * self.taker_fee_rate

    def _match_market_order(self, order: Order) -> None:
        if not order.is_open():
            raise ValueError("order is closed")
        ob = self._order_book()
        if order.direction == Direction.BUY:
            price = ob.ask_ave_price(order.amount)
            signed = order.amount
        else:
            price = ob.bid_ave_price(order.amount)
            signed = -order.amount
        if price <= 0:
            raise ValueError("size is bigger than orderbook")
        try:
            filled = self._update_position(order.symbol, signed, price, order.reduce_only)
        except ValueError:
            order.status = OrderStatus.REJECTED
            raise ValueError("order rejected") from None
        fee = self._fee(filled, price)
        self.total_fee += fee
        order.filled_amount = filled
        order.avg_price = price
        self.balance -= fee
        order.commission += fee
        order.update_time = ob.time
        order.status = OrderStatus.FILLED

    def _match_limit_order(self, order: Order, immediate: bool) -> None:
        if not order.is_open():
            return
        ob = self._order_book()
        if order.direction == Direction.BUY:
            crosses = order.price >= ob.ask_price()
            signed = order.amount
        else:
            crosses = order.price <= ob.bid_price()
            signed = -order.amount
        if not crosses:
            return
        if immediate and order.post_only:
            order.status = OrderStatus.REJECTED
            return
        rate = self.taker_fee_rate if immediate else self.maker_fee_rate
        fee = order.amount / order.price * rate
        self.total_fee += fee
        self.balance -= fee
        try:
            self._update_position(order.symbol, signed, order.price, order.reduce_only)
        except ValueError:
            pass

    def _update_position(self, symbol: str, size: float, price: float, is_reduce: bool) -> float:
        position = self._get_position(symbol)
        if not self.is_dual_side_position:
            current = position[0]
            if (current.size > 0 and size < 0) or (current.size < 0 and size > 0):
                return self._close_position(current, size, price, is_reduce)
            return self._add_position(current, size, price)
        if size < 0:
            if is_reduce:
                return self._close_position(position[0], size, price, is_reduce)
            return self._add_position(position[1], size, price)
        if size > 0:
            if is_reduce:
                return self._close_position(position[1], size, price, is_reduce)
            return self._add_position(position[0], size, price)
        raise ValueError("error")

    def _add_position(self, position: Position, size: float, price: float) -> float:
        if (position.size < 0 and size > 0) or (position.size > 0 and size < 0):
            raise ValueError("wrong direction")
        has_cost = position.size != 0 and position.avg_price != 0
        total_size = abs(position.size + size)
        if self.is_forward_contract:
            cost = abs(position.size) * position.avg_price if has_cost else 0.0
            position.avg_price = (cost + abs(size) * price) / total_size
        else:
            cost = abs(position.size) / position.avg_price if has_cost else 0.0
            position.avg_price = total_size / (cost + abs(size) / price)
        position.size += size
        position.open_time = self._order_book().time
        position.open_price = position.avg_price
        return abs(size)

    def _close_position(self, position: Position, size: float, price: float, is_reduce: bool) -> float:
        """Close against ``position``; beyond its size a new one opens the other way."""
        if position.size == 0:
            raise ValueError("no position")
        remaining = abs(size) - abs(position.size)
        if is_reduce:
            remaining = min(remaining, 0.0)
            amount = abs(position.size)
        else:
            amount = abs(size)

        side = position.side()
        if remaining > 0:
            pnl = calc_pnl(side, abs(position.size), position.avg_price, price, self.is_forward_contract)
            self.balance += pnl
            position.profit = pnl
            position.avg_price = price
            position.size += size
        elif remaining == 0:
            pnl = calc_pnl(side, abs(size), position.avg_price, price, self.is_forward_contract)
            position.profit = pnl
            self.balance += pnl
            if pnl > 0:
                if side == Direction.BUY:
                    self.long_win_cnt += 1
                else:
                    self.short_win_cnt += 1
                self.position_win_cnt += 1
            if side == Direction.BUY:
                self.long_cnt += 1
            else:
                self.short_cnt += 1
            print(f"close [{side}] position, profit:{pnl}")
            self.position_cnt += 1
            position.avg_price = 0.0
            position.size = 0.0
        else:
            pnl = calc_pnl(side, abs(position.size), position.avg_price, price, self.is_forward_contract)
            position.profit = pnl
            self.balance += pnl
            position.size += size
        return amount

    def _get_position(self, symbol: str) -> list[Position]:
        if symbol not in self.positions:
            count = 2 if self.is_dual_side_position else 1
            self.positions[symbol] = [Position(symbol=symbol) for _ in range(count)]
        return self.positions[symbol]

    def get_open_orders(self, symbol: str) -> list[Order]:
        return [o for o in self.open_orders.values() if o.symbol == symbol]

    def get_order_history(self, symbol: str) -> list[Order]:
        return [o for o in self.history_orders.values() if o.symbol == symbol]

    def get_order(self, symbol: str, order_id: str) -> Order:
        try:
            return self.orders[order_id]
        except KeyError:
            raise KeyError("not found") from None

    def cancel_order(self, symbol: str, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise KeyError("not found")
        if not order.is_open():
            raise ValueError("status error")
        order.status = OrderStatus.CANCELLED
        self.open_orders.pop(order_id, None)
        return order

    def cancel_all_orders(self, symbol: str) -> None:
        """Cancel every open order."""
        for order_id, order in list(self.open_orders.items()):
            if not order.is_open():
                print(f"Order error: {order!r}")
                continue
            order.status = OrderStatus.CANCELLED
            del self.open_orders[order_id]

    def get_positions(self, symbol: str) -> list[Position]:
        """Copies of the symbol's positions."""
        return [dataclasses.replace(p) for p in self._get_position(symbol)]

    def set_backtest(self, backtest: _Backtest) -> None:
        self.backtest = backtest

    def set_exchange_logger(self, logger: Any) -> None:
        self.exchange_logger = logger

    def run_event_loop_once(self) -> None:
        """Match the open orders against the current order book."""
        for order in list(self.open_orders.values()):
            try:
                self._match_order(order, False)
            except ValueError:
                pass

    def get_win_rate(self) -> tuple[float, float, float]:
        """Winning share of closed long, short and all positions."""
        return (
            _ratio(self.long_win_cnt, self.long_cnt),
            _ratio(self.short_win_cnt, self.short_cnt),
            _ratio(self.position_win_cnt, self.position_cnt),
        )

    def get_fee(self) -> float:
        return self.total_fee

    def _log_order_info(self, msg: str, event: str, order: Order) -> None:
        if self.exchange_logger is None:
            return
        self.exchange_logger.infow(
            msg,
            _EVENT_KEY, event,
            "order", order,
            "orderbook", self._order_book(),
            "balance", self.balance,
            "positions", self._get_position(order.symbol),
        )