"""Order id generators: a day-based counter and a time-ordered 63-bit id source."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

_ID_BASE_DATE = date(2006, 1, 2)


class IdGenerator:
    """Counter whose ids start at 10000 times the number of days since 2006-01-02."""

    def __init__(self, id_high: int = 0) -> None:
        self.id_high = id_high
        self._id = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._id += 1
            return self.id_high + self._id


def new_id_generator(base_time: datetime | date) -> IdGenerator:
    """Create a generator whose ids are prefixed by the day of ``base_time``."""
    day = base_time.date() if isinstance(base_time, datetime) else base_time
    return IdGenerator(id_high=(day - _ID_BASE_DATE).days * 10000)


class _Installed:
    generator: IdGenerator | None = None


_installed = _Installed()


def set_id_generator(generator: IdGenerator | None) -> IdGenerator | None:
    """Install the generator used by :func:`gen_order_id`; returns the one it replaces."""
    previous = _installed.generator
    _installed.generator = generator
    return previous


def gen_order_id() -> str:
    """Next order id from the installed generator, as a string."""
    generator = _installed.generator
    if generator is None:
        raise RuntimeError("no id generator set")
    return str(generator.next())


_BIT_LEN_TIME = 39
_BIT_LEN_SEQUENCE = 8
_BIT_LEN_MACHINE_ID = 63 - _BIT_LEN_TIME - _BIT_LEN_SEQUENCE
_TIME_UNIT = timedelta(milliseconds=10)
_DEFAULT_START = datetime(2014, 9, 1, tzinfo=timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Sonyflake:
    """Time-ordered ids: 39 bits of 10 ms ticks, 8 bits of sequence, 16 bits of machine id."""

    def __init__(
        self,
        start_time: datetime | None = None,
        machine_id: int = 0,
        clock: Callable[[], datetime] = _utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._start = start_time or _DEFAULT_START
        if self._start > clock():
            raise ValueError("start time is in the future")
        if not 0 <= machine_id < (1 << _BIT_LEN_MACHINE_ID):
            raise ValueError("machine id out of range")
        self._machine_id = machine_id
        self._elapsed = 0
        self._sequence = (1 << _BIT_LEN_SEQUENCE) - 1
        self._lock = threading.Lock()

    def next_id(self) -> int:
        mask = (1 << _BIT_LEN_SEQUENCE) - 1
        with self._lock:
            since = self._clock() - self._start
            current = since // _TIME_UNIT
            if self._elapsed < current:
                self._elapsed = current
                self._sequence = 0
            else:
                self._sequence = (self._sequence + 1) & mask
                if self._sequence == 0:
                    self._elapsed += 1
                    overtime = self._elapsed - current
                    wait = overtime * _TIME_UNIT - since % _TIME_UNIT
                    self._sleep(wait.total_seconds())
            if self._elapsed >= 1 << _BIT_LEN_TIME:
                raise OverflowError("over the time limit")
            return (
                self._elapsed << (_BIT_LEN_SEQUENCE + _BIT_LEN_MACHINE_ID)
                | self._sequence << _BIT_LEN_MACHINE_ID
                | self._machine_id
            )


_flake = Sonyflake()


def next_id() -> int:
    """Next id from the process-wide time-ordered generator."""
    return _flake.next_id()