"""Load a strategy's exchanges, options and logging from a TOML file and run it."""

from __future__ import annotations

import argparse
import tomllib
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from . import logfacade
from .rotlog import MyLogger

TRADE_MODE_LIVE_TRADING = "live_trading"

_config_file = "config.toml"


@dataclass
class SLog:
    path: str = ""
    level: str = ""


@dataclass
class SExchange:
    name: str = ""
    debug_mode: bool = False
    access_key: str = ""
    secret_key: str = ""
    passphrase: str = ""
    testnet: bool = False
    websocket: bool = False


@dataclass
class SConfig:
    log: SLog = field(default_factory=SLog)
    exchanges: list[SExchange] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)


def load_config(path: str) -> SConfig:
    """Read the ``[log]``, ``[[exchange]]`` and ``[option]`` tables of a TOML file."""
    with open(path, "rb") as fh:
        data = tomllib.load(fh)
    log = data.get("log", {})
    known = SExchange.__dataclass_fields__
    return SConfig(
        log=SLog(path=log.get("path", ""), level=log.get("level", "")),
        exchanges=[
            SExchange(**{k: v for k, v in ex.items() if k in known})
            for ex in data.get("exchange", [])
        ],
        options=dict(data.get("option", {})),
    )


def setup_strategy_from_config(
    strategy: Any, config_path: str | None, exchange_factory: Callable[..., Any]
) -> SConfig:
    """Create the configured exchanges, set them and the options on ``strategy``, install the logger."""
    config = load_config(config_path or _config_file)
    if not config.exchanges:
        raise ValueError("no exchange found")
    exchanges = []
    for ex in config.exchanges:
        kwargs: dict[str, Any] = {
            "debug_mode": ex.debug_mode,
            "access_key": ex.access_key,
            "secret_key": ex.secret_key,
            "testnet": ex.testnet,
            "websocket": ex.websocket,
        }
        if ex.passphrase:
            kwargs["passphrase"] = ex.passphrase
        exchanges.append(exchange_factory(ex.name, **kwargs))
    strategy.setup(TRADE_MODE_LIVE_TRADING, *exchanges)
    strategy.set_options(config.options)
    logfacade.set_logger(MyLogger(config.log.path, config.log.level, False))
    return config


def serve(
    strategy: Any,
    exchange_factory: Callable[..., Any],
    argv: Sequence[str] | None = None,
) -> None:
    """Parse ``-c``, configure the strategy and run its init, run and exit steps."""
    global _config_file
    parser = argparse.ArgumentParser()
    parser.add_argument("-c", default="config.toml")
    args = parser.parse_args(argv)
    _config_file = args.c
    strategy.set_self(strategy)
    setup_strategy_from_config(strategy, _config_file, exchange_factory)
    strategy.on_init()
    strategy.run()
    strategy.on_exit()