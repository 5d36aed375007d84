from dataclasses import dataclass, field

import pytest

from tradekit.spot import SpotExchange
from tradekit.strategy import (
    CStrategyBase,
    SpotStrategyBase,
    StrategyBase,
    get_options,
    set_options,
)


class _Runs:
    def run(self):
        pass

    def on_init(self):
        pass

    def on_tick(self):
        pass

    def on_exit(self):
        pass


@dataclass
class Demo(_Runs, StrategyBase):
    fast: int = field(default=5, metadata={"opt": "fast period,7"})
    ratio: float = field(default=0.5, metadata={"opt": "ratio,0.25"})
    enabled: bool = field(default=False, metadata={"opt": "enabled,true"})
    label: str = field(default="a", metadata={"opt": "label,abc"})
    slow_len: int = field(default=1, metadata={"opt": "slow"})
    hidden: int = 3


@dataclass
class SpotDemo(_Runs, SpotStrategyBase):
    size: float = field(default=1.0, metadata={"opt": "size,2"})


@dataclass
class CDemo(_Runs, CStrategyBase):
    pass


class FakeExchange:
    def open_long(self):
        pass

    def close_long(self):
        pass

    def place_order(self):
        pass


class FakeSpot:
    pass


SpotExchange.register(FakeSpot)


def test_get_options_reads_tags():
    opts = get_options(Demo())
    assert set(opts) == {"fast", "ratio", "enabled", "label", "slow_len"}
    assert opts["fast"].description == "fast period"
    assert opts["fast"].value == 5
    assert opts["fast"].default_value == 7
    assert opts["fast"].type == "int"
    assert opts["ratio"].default_value == 0.25
    assert opts["enabled"].default_value is True
    assert opts["label"].default_value == "abc"
    assert opts["slow_len"].default_value == 0


def test_get_options_method_matches_function():
    s = Demo()
    assert StrategyBase.get_options(s) == get_options(s)


def test_get_options_of_none_is_empty():
    assert get_options(None) == {}


def test_set_options_casts_values():
    s = Demo()
    StrategyBase.set_options(
        s, {"fast": "12", "ratio": 2, "enabled": "true", "label": "x", "slow_len": 9, "nope": 1}
    )
    assert (s.fast, s.ratio, s.enabled, s.label, s.slow_len) == (12, 2.0, True, "x", 9)
    assert s.hidden == 3


def test_set_options_keys_are_case_sensitive_on_input():
    s = Demo()
    set_options(s, {"FAST": 99})
    assert s.fast == 5


def test_set_options_string_needs_string():
    with pytest.raises(TypeError):
        set_options(Demo(), {"label": 5})


def test_set_self_redirects_options():
    holder = Demo()
    target = Demo()
    StrategyBase.set_self(holder, target)
    StrategyBase.set_options(holder, {"fast": 20})
    assert target.fast == 20 and holder.fast == 5


def test_setup_and_stop():
    s = Demo()
    ex = FakeExchange()
    StrategyBase.setup(s, "backtest", ex)
    assert s.exchange is ex and s.exchanges == [ex]
    assert s.trade_mode == "backtest"
    assert StrategyBase.is_stopped(s) is False
    StrategyBase.stop_now(s)
    assert StrategyBase.is_stopped(s) is True


def test_setup_errors():
    with pytest.raises(ValueError):
        StrategyBase.setup(Demo(), "m")
    with pytest.raises(TypeError):
        StrategyBase.setup(Demo(), "m", FakeSpot())
    with pytest.raises(TypeError):
        SpotStrategyBase.setup(SpotDemo(), "m", FakeExchange())


def test_spot_setup():
    s = SpotDemo()
    sp = FakeSpot()
    SpotStrategyBase.setup(s, "m", sp)
    assert s.exchange is sp


def test_spot_options():
    s = SpotDemo()
    SpotStrategyBase.set_options(s, {"size": "3.5"})
    assert s.size == 3.5
    assert SpotStrategyBase.get_options(s)["size"].default_value == 2.0


def test_combined_setup_splits():
    s = CDemo()
    ex, sp = FakeExchange(), FakeSpot()
    CStrategyBase.setup(s, "m", ex, sp, object())
    assert s.exchanges == [ex]
    assert s.spot_exchanges == [sp]
    assert CStrategyBase.is_stopped(s) is False
    CStrategyBase.stop_now(s)
    assert CStrategyBase.is_stopped(s) is True