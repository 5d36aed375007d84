import math
from datetime import datetime, timezone

import pytest

from tradekit.generatesim import GenerateSim, calc_pnl
from tradekit.ids import IdGenerator, set_id_generator
from tradekit.models import Direction, Item, OrderBook, OrderStatus, OrderType


class FakeData:
    def __init__(self, ob):
        self.ob = ob

    def get_order_book(self):
        return self.ob


class FakeBacktest:
    def get_time(self):
        return datetime(2020, 1, 1, tzinfo=timezone.utc)


class FakeLogger:
    def __init__(self):
        self.calls = []

    def infow(self, msg, *args):
        self.calls.append(("infow", msg, args))

    def error(self, *args):
        self.calls.append(("error", args))


@pytest.fixture(autouse=True)
def id_gen():
    set_id_generator(IdGenerator())
    yield
    set_id_generator(None)


def book():
    return OrderBook(
        symbol="BTC",
        time=datetime(2020, 1, 1, tzinfo=timezone.utc),
        asks=[Item(100.0, 10.0)],
        bids=[Item(99.0, 10.0)],
    )


def make_sim(forward=True, dual=False):
    sim = GenerateSim(FakeData(book()), 10000.0, 0.0, 0.001, forward, dual)
    sim.set_exchange_logger(FakeLogger())
    return sim


def test_calc_pnl_forward():
    assert calc_pnl(Direction.BUY, 2, 100, 110, True) == pytest.approx(20)
    assert calc_pnl(Direction.SELL, 2, 100, 110, True) == pytest.approx(-20)


def test_calc_pnl_inverse_and_zero():
    assert calc_pnl(Direction.BUY, 100, 100, 200, False) == pytest.approx(0.5)
    assert calc_pnl(Direction.SELL, 100, 100, 200, False) == pytest.approx(-0.5)
    assert calc_pnl(Direction.BUY, 0, 100, 200, False) == 0


def test_get_name():
    assert make_sim().get_name() == "generate"


def test_get_time():
    sim = make_sim()
    sim.set_backtest(FakeBacktest())
    assert sim.get_time() == 1577836800000


def test_market_buy_then_sell(capsys):
    sim = make_sim()
    order = sim.open_long("BTC", OrderType.MARKET, 0, 2)
    assert order.status == OrderStatus.FILLED
    assert order.filled_amount == 2
    assert order.avg_price == 100
    assert order.commission == pytest.approx(0.2)
    assert sim.balance == pytest.approx(9999.8)
    assert sim.get_balance("BTC").equity == pytest.approx(9999.8)
    assert sim.get_positions("BTC")[0].size == 2

    sim.close_long("BTC", OrderType.MARKET, 0, 2)
    assert sim.balance == pytest.approx(9997.602)
    assert sim.get_positions("BTC")[0].size == 0
    assert sim.get_fee() == pytest.approx(0.398)
    long_rate, short_rate, total_rate = sim.get_win_rate()
    assert long_rate == 0.0
    assert math.isnan(short_rate)
    assert total_rate == 0.0
    assert "close [Buy] position" in capsys.readouterr().out
    assert len(sim.get_order_history("BTC")) == 2


def test_size_errors():
    sim = make_sim()
    with pytest.raises(ValueError, match="size is zero"):
        sim.place_order("BTC", Direction.BUY, OrderType.MARKET, 0, 0)
    with pytest.raises(ValueError, match="bigger than orderbook"):
        sim.place_order("BTC", Direction.BUY, OrderType.MARKET, 0, 50)


def test_get_order_and_not_found():
    sim = make_sim()
    order = sim.open_long("BTC", OrderType.MARKET, 0, 1)
    assert sim.get_order("BTC", order.id) is order
    with pytest.raises(KeyError):
        sim.get_order("BTC", "missing")


def test_limit_order_cancel():
    sim = make_sim()
    order = sim.place_order("BTC", Direction.BUY, OrderType.LIMIT, 50, 1)
    assert order.status == OrderStatus.NEW
    assert sim.get_open_orders("BTC") == [order]
    cancelled = sim.cancel_order("BTC", order.id)
    assert cancelled.status == OrderStatus.CANCELLED
    assert sim.get_open_orders("BTC") == []
    with pytest.raises(ValueError, match="status error"):
        sim.cancel_order("BTC", order.id)
    with pytest.raises(KeyError):
        sim.cancel_order("BTC", "missing")


def test_cancel_all_orders():
    sim = make_sim()
    a = sim.place_order("BTC", Direction.BUY, OrderType.LIMIT, 50, 1)
    b = sim.place_order("ETH", Direction.SELL, OrderType.LIMIT, 500, 1)
    sim.cancel_all_orders("BTC")
    assert a.status == OrderStatus.CANCELLED
    assert b.status == OrderStatus.CANCELLED
    assert sim.open_orders == {}


def test_post_only_limit_rejected():
    sim = make_sim()
    order = sim.place_order("BTC", Direction.BUY, OrderType.LIMIT, 100, 1, post_only=True)
    assert order.status == OrderStatus.REJECTED
    assert sim.get_order_history("BTC") == [order]


def test_crossing_limit_updates_position_inverse():
    sim = make_sim(forward=False)
    order = sim.place_order("BTC", Direction.BUY, OrderType.LIMIT, 100, 2)
    assert order.status == OrderStatus.NEW
    pos = sim.get_positions("BTC")[0]
    assert pos.size == 2
    assert pos.avg_price == pytest.approx(100)
    assert sim.balance == pytest.approx(10000 - 2 / 100 * 0.001)


def test_dual_side_positions():
    sim = make_sim(dual=True)
    sim.open_long("BTC", OrderType.MARKET, 0, 2)
    sim.open_short("BTC", OrderType.MARKET, 0, 3)
    sizes = [p.size for p in sim.get_positions("BTC")]
    assert sizes == [2, -3]
    sim.close_long("BTC", OrderType.MARKET, 0, 2)
    assert [p.size for p in sim.get_positions("BTC")] == [0, -3]


def test_reduce_without_position_rejected():
    sim = make_sim(dual=True)
    with pytest.raises(ValueError, match="order rejected"):
        sim.close_short("BTC", OrderType.MARKET, 0, 1)
    assert sim.orders == {}


def test_get_positions_returns_copies():
    sim = make_sim()
    sim.open_long("BTC", OrderType.MARKET, 0, 1)
    copy = sim.get_positions("BTC")[0]
    copy.size = 99
    assert sim.get_positions("BTC")[0].size == 1


def test_place_order_logs():
    sim = make_sim()
    sim.open_long("BTC", OrderType.MARKET, 0, 1)
    messages = [call[1] for call in sim.exchange_logger.calls]
    assert messages == ["PlaceOrder", "Place order"]