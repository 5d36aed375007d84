# tradekit

Building blocks for writing trading strategies against futures and spot
exchanges, and two simulated exchanges that fill orders against recorded
order books so a strategy can be exercised in a backtest.

Requires Python 3.11 or later. Install with `pip install .`; the test
extra (`pip install .[test]`) adds pytest.

## Modules

- `tradekit.models`: the shared vocabulary. Enums `Direction`, `OrderType`,
  `OrderStatus` and `WSEvent`; dataclasses `Market`, `Balance`, `Item`,
  `OrderBook`, `Record` (a candle), `Trade`, `Order`, `Position`, and the
  backtest log records `LogStats` and `LogItem` (`total_equity()` sums the
  equity of its stats).
- `tradekit.spot`: `SpotAsset` and `SpotBalance` (`add()` adds another
  balance in place), and the abstract `SpotExchange` and `SpotExchangeSim`
  interfaces.
- `tradekit.stats`: `Stats`, the summary of a backtest run.
  `format_result()` returns the report as text; `print_result()` writes it
  to standard output and returns it.
- `tradekit.mathutil`: price rounding. `to_fixed(num, precision)` rounds
  halves away from zero; `to_fixed_e5(x)` rounds to the nearest 0.5;
  `to_fixed_e5p(x, precision)` rounds to half steps at a decimal precision
  (0.05 for precision 1).
- `tradekit.ids`: `IdGenerator` and `new_id_generator(base_time)`, whose ids
  start at 10000 times the number of days since 2006-01-02;
  `set_id_generator` installs one and `gen_order_id()` returns its next id as
  a string (it raises `RuntimeError` while none is installed). `Sonyflake`
  and `next_id()` give time-ordered 63-bit ids.
- `tradekit.conv`: lenient parsing. `parse_float64` and `parse_int` return 0
  for text that is not a number; `parse_int` clamps to the 64-bit range.
  `sort_int64` sorts a list in place.
- `tradekit.logfacade`: a process-wide logging facade. Install any `Logger`
  with `set_logger`; until then `debug`, `info`, `warn`, `error`, their
  `…f` and `…w` forms and `sync` do nothing.
- `tradekit.rotlog`: `MyLogger(path, level, json_format)`, a `Logger` that
  writes console text or JSON lines to a size-rotated file and to standard
  output.
- `tradekit.strategy`: the abstract `Strategy` and the bases `StrategyBase`
  (futures exchanges), `SpotStrategyBase` (spot exchanges) and
  `CStrategyBase` (both), plus `StrategyOption`, `get_options` and
  `set_options`.
- `tradekit.serve`: TOML configuration (`SConfig`, `SLog`, `SExchange`,
  `load_config`), `setup_strategy_from_config` and `serve`.
- `tradekit.generatesim`: `GenerateSim`, a simulated futures exchange, and
  `calc_pnl`.
- `tradekit.spotsim`: `SpotSim`, a simulated spot exchange.
- `tradekit.depthbook`: `DepthOrderBook`, an order book kept up to date from
  snapshot and update messages.

## Order books

```python
from tradekit.models import Item, OrderBook

ob = OrderBook(
    symbol="BTC-USD",
    asks=[Item(price=100.0, amount=1.0), Item(price=101.0, amount=2.0)],
    bids=[Item(price=99.0, amount=1.5), Item(price=98.0, amount=3.0)],
)

ob.ask_price()          # 100.0
ob.bid_price()          # 99.0
ob.price()              # 99.5, the middle of best bid and best ask
ob.ask_ave_price(2.0)   # average fill price for buying 2.0
ob.match_bids(1.0)      # (filled size, average price) when selling 1.0
print(ob.table())       # asks and bids side by side
```

`ask_ave_price` and `bid_ave_price` return `-1` when the book is too thin
for the requested size; `match_asks` and `match_bids` return `(0.0, 0.0)` in
that case.

`DepthOrderBook.update(event, asks, bids)` takes `[price, amount]` pairs:
an `"snapshot"` event replaces every level, an `"update"` event sets levels
and removes those whose amount is 0. `get_order_book(depth)` returns an
`OrderBook` with the best `depth` levels of each side.

## Profit and loss

`calc_pnl(side, position_size, entry_price, exit_price, is_forward_contract)`
gives the profit of closing a position: `size * (exit - entry)` for linear
(forward) contracts, `size * (1/entry - 1/exit)` for inverse ones, with the
sign reversed for short positions.

## Writing a strategy

Subclass `StrategyBase` as a dataclass and implement `on_init`, `on_tick`,
`run` and `on_exit`. Exchanges are handed over with `setup(mode, *exchanges)`;
the first one is also `self.exchange`. `setup` raises `ValueError` when given
no exchanges and `TypeError` when given the wrong kind. Stop a loop with
`stop_now()` and check it with `is_stopped()`.

Options are dataclass fields carrying `metadata={"opt": "description,default"}`:

```python
from dataclasses import dataclass, field
from tradekit.strategy import StrategyBase

@dataclass
class MyStrategy(StrategyBase):
    grid_size: float = field(default=0.0, metadata={"opt": "grid size,10.5"})

    def on_init(self): ...
    def on_tick(self): ...
    def run(self): ...
    def on_exit(self): ...

s = MyStrategy()
s.set_options({"gridsize": "12"})   # s.grid_size == 12.0
s.get_options()["grid_size"].default_value   # 10.5
```

`set_options` matches a key, with its underscores removed, against the
option names lowercased and with their underscores removed, and converts the
value to the field's type (`bool`, `int`, `float` or `str`).

## Configuration and running

`load_config(path)` reads a TOML file with a `[log]` table (`path`,
`level`), `[[exchange]]` entries (`name`, `debug_mode`, `access_key`,
`secret_key`, `passphrase`, `testnet`, `websocket`) and an `[option]` table.

`serve(strategy, exchange_factory, argv)` reads the file given with `-c`
(default `config.toml`), calls `exchange_factory(name, debug_mode=…,
access_key=…, secret_key=…, testnet=…, websocket=…)` for each exchange (with
`passphrase=…` when one is set), sets them up on the strategy in
`"live_trading"` mode, applies the options, installs a `MyLogger` from the
`[log]` table, and runs `on_init`, `run` and `on_exit`. It raises
`ValueError` when the file lists no exchange.

## Backtesting

`GenerateSim(data, cash, maker_fee_rate, taker_fee_rate, is_forward_contract,
dual_side_position=False)` fills market and limit orders against
`data.get_order_book()`, charges fees, keeps one-way or dual-side positions,
and counts closed positions for `get_win_rate()` (NaN where nothing was
closed). `SpotSim(name, data, init_balance, maker_fee_rate, taker_fee_rate)`
fills orders against `data.get_order_book_by_ns(symbol, ns)` and keeps base
and quote balances; `io("AddBalance", json_text)` adds to them.

Both take the current time from an object given with `set_backtest`, which
must provide `get_time()` returning a `datetime`, and need an id generator
installed with `tradekit.ids.set_id_generator`. Call `run_event_loop_once()`
on every backtest step so resting limit orders can fill; `SpotSim.on_order`
registers a callback that receives the orders filled in that step.

## What this package does not do

It has no connections to real exchanges, REST or streaming: strategies
get their exchanges from the `exchange_factory` you pass to `serve`. It has
no backtest driver and no market-data loader; the simulated exchanges only
read from the data and backtest objects you supply. It installs no
command-line program.