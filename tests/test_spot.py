import pytest

from tradekit.models import Direction, Order, OrderBook, OrderType
from tradekit.spot import SpotAsset, SpotBalance, SpotExchange, SpotExchangeSim


class _FakeSpot(SpotExchange):
    def __init__(self):
        self.placed = []

    def get_name(self):
        return "fake"

    def get_time(self):
        return 0

    def get_balance(self, currency):
        return SpotBalance()

    def get_order_book(self, symbol, depth):
        return OrderBook(symbol=symbol)

    def get_records(self, symbol, period, start, end, limit):
        return []

    def place_order(self, symbol, direction, order_type, price, size, post_only=False, reduce_only=False):
        order = Order(symbol=symbol, direction=direction, type=order_type, price=price, amount=size)
        self.placed.append(order)
        return order

    def get_open_orders(self, symbol):
        return []

    def get_history_orders(self, symbol):
        return []

    def get_order(self, symbol, order_id):
        return Order(id=order_id)

    def cancel_all_orders(self, symbol):
        return None

    def cancel_order(self, symbol, order_id):
        return Order(id=order_id)

    def io(self, name, params):
        return ""


def test_add_to_empty_balance_copies_amounts():
    balance = SpotBalance(base=SpotAsset(name="BTC"), quote=SpotAsset(name="USDT"))
    other = SpotBalance(
        base=SpotAsset(available=1.0, frozen=0.5, borrow=0.25),
        quote=SpotAsset(available=10000.0, frozen=2.0, borrow=3.0),
    )
    balance.add(other)
    assert (balance.base.available, balance.base.frozen, balance.base.borrow) == (1.0, 0.5, 0.25)
    assert (balance.quote.available, balance.quote.frozen, balance.quote.borrow) == (10000.0, 2.0, 3.0)
    assert balance.base.name == "BTC"
    assert balance.quote.name == "USDT"


def test_add_twice_doubles():
    other = SpotBalance(base=SpotAsset(available=1.5), quote=SpotAsset(available=4.0))
    balance = SpotBalance()
    balance.add(other)
    balance.add(other)
    assert balance.base.available == 2 * other.base.available
    assert balance.quote.available == 2 * other.quote.available


def test_add_leaves_other_untouched():
    other = SpotBalance(base=SpotAsset(available=1.0))
    SpotBalance(base=SpotAsset(available=7.0)).add(other)
    assert other.base.available == 1.0


def test_interfaces_are_abstract():
    with pytest.raises(TypeError):
        SpotExchange()
    with pytest.raises(TypeError):
        SpotExchangeSim()


def test_buy_and_sell_delegate_to_place_order():
    ex = _FakeSpot()
    bought = SpotExchange.buy(ex, "BTCUSDT", OrderType.LIMIT, 100.0, 2.0)
    sold = SpotExchange.sell(ex, "BTCUSDT", OrderType.MARKET, 0.0, 1.0)
    assert bought.direction is Direction.BUY
    assert sold.direction is Direction.SELL
    assert ex.placed == [bought, sold]
    assert bought.amount == 2.0