"""Strategy base classes and option discovery from dataclass field metadata."""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .spot import SpotExchange

STRATEGY_OPTION_TAG = "opt"

_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}
_KIND_NAMES = {"bool": bool, "str": str, "int": int, "float": float}


@dataclass
class StrategyOption:
    """A tunable strategy parameter."""

    name: str
    description: str
    type: str
    value: Any
    default_value: Any


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value in _TRUE_WORDS
    return False


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            return 0
    return 0


def _to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _field_kind(f: dataclasses.Field, value: Any) -> type:
    declared = f.type
    if isinstance(declared, type):
        return declared
    if isinstance(declared, str):
        return _KIND_NAMES.get(declared.strip(), type(value))
    return type(value)


def _default_value(kind: type, text: str) -> Any:
    if kind is bool:
        return _to_bool(text)
    if kind is str:
        return text
    if kind is int:
        return _to_int(text)
    if kind is float:
        return _to_float(text)
    return 0


def _option_fields(obj: Any) -> dict[str, tuple[dataclasses.Field, str]]:
    if obj is None or not dataclasses.is_dataclass(obj) or isinstance(obj, type):
        return {}
    return {
        f.name: (f, f.metadata[STRATEGY_OPTION_TAG])
        for f in dataclasses.fields(obj)
        if f.metadata.get(STRATEGY_OPTION_TAG, "")
    }


def get_options(obj: Any) -> dict[str, StrategyOption]:
    """Options declared on a dataclass instance through ``metadata={"opt": "description,default"}``."""
    result: dict[str, StrategyOption] = {}
    for name, (f, tag) in _option_fields(obj).items():
        description, _, default_text = tag.partition(",")
        value = getattr(obj, name)
        kind = _field_kind(f, value)
        result[name] = StrategyOption(
            name=name,
            description=description,
            type=kind.__name__,
            value=value,
            default_value=_default_value(kind, default_text),
        )
    return result


def set_options(obj: Any, options: dict[str, Any] | None) -> None:
    """Assign option values by name; names match ignoring underscores and case of the field."""
    if not options:
        return
    fields = _option_fields(obj)
    raw = {name.lower().replace("_", ""): name for name in fields}
    for name, value in options.items():
        field_name = raw.get(name.replace("_", ""))
        if field_name is None:
            continue
        f, _ = fields[field_name]
        kind = _field_kind(f, getattr(obj, field_name))
        if kind is bool:
            setattr(obj, field_name, _to_bool(value))
        elif kind is str:
            if not isinstance(value, str):
                raise TypeError(f"option {field_name} needs a string, got {value!r}")
            setattr(obj, field_name, value)
        elif kind is int:
            setattr(obj, field_name, _to_int(value))
        elif kind is float:
            setattr(obj, field_name, _to_float(value))
        else:
            print(f"Error Kind: {kind.__name__}")


def _is_exchange(obj: Any) -> bool:
    return not isinstance(obj, SpotExchange) and all(
        callable(getattr(obj, attr, None)) for attr in ("open_long", "close_long", "place_order")
    )


def _target(holder: Any) -> Any:
    target = getattr(holder, "_self", None)
    return target if target is not None else holder


class Strategy(ABC):
    """A trading strategy."""

    name: str = ""
    trade_mode: Any = None

    @abstractmethod
    def run(self) -> None: ...

    @abstractmethod
    def on_init(self) -> None: ...

    @abstractmethod
    def on_tick(self) -> None: ...

    @abstractmethod
    def on_exit(self) -> None: ...


class StrategyBase(Strategy):
    """Base for strategies trading derivatives exchanges."""

    _self: Any = None
    exchanges: list = []
    exchange: Any = None
    stopped: bool = False

    def set_self(self, strategy: Strategy) -> None:
        self._self = strategy

    def setup(self, mode: Any, *args: Any) -> None:
        if not args:
            raise ValueError("no exchanges")
        if not all(_is_exchange(ex) for ex in args):
            raise TypeError("Exchange Only")
        self.trade_mode = mode
        self.exchanges = [*self.exchanges, *args]
        self.exchange = self.exchanges[0]
        self.stopped = False

    def set_options(self, options: dict[str, Any] | None) -> None:
        set_options(_target(self), options)

    def get_options(self) -> dict[str, StrategyOption]:
        return get_options(_target(self))

    def is_stopped(self) -> bool:
        return self.stopped

    def stop_now(self) -> None:
        self.stopped = True


class SpotStrategyBase(Strategy):
    """Base for strategies trading spot exchanges."""

    _self: Any = None
    exchanges: list = []
    exchange: Any = None

    def set_self(self, strategy: Strategy) -> None:
        self._self = strategy

    def setup(self, mode: Any, *args: Any) -> None:
        if not args:
            raise ValueError("no exchanges")
        if not all(isinstance(ex, SpotExchange) for ex in args):
            raise TypeError("SpotExchange only")
        self.trade_mode = mode
        self.exchanges = [*self.exchanges, *args]
        self.exchange = self.exchanges[0]

    def set_options(self, options: dict[str, Any] | None) -> None:
        set_options(_target(self), options)

    def get_options(self) -> dict[str, StrategyOption]:
        return get_options(_target(self))


class CStrategyBase(Strategy):
    """Base for combined strategies over both derivatives and spot exchanges."""

    _self: Any = None
    exchanges: list = []
    spot_exchanges: list = []
    stopped: bool = False

    def set_self(self, strategy: Strategy) -> None:
        self._self = strategy

    def setup(self, mode: Any, *args: Any) -> None:
        if not args:
            raise ValueError("no exchanges")
        self.trade_mode = mode
        self.exchanges = [*self.exchanges, *(ex for ex in args if _is_exchange(ex))]
        self.spot_exchanges = [
            *self.spot_exchanges,
            *(ex for ex in args if isinstance(ex, SpotExchange)),
        ]
        self.stopped = False

    def set_options(self, options: dict[str, Any] | None) -> None:
        set_options(_target(self), options)

    def get_options(self) -> dict[str, StrategyOption]:
        return get_options(_target(self))

    def is_stopped(self) -> bool:
        return self.stopped

    def stop_now(self) -> None:
        self.stopped = True