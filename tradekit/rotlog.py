"""A logger writing to a size-rotated file and to standard output."""

from __future__ import annotations

import gzip
import itertools
import json
import logging
import os
import shutil
import sys
import tempfile
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from .logfacade import DEBUG_LEVEL, ERROR_LEVEL, INFO_LEVEL, PANIC_LEVEL, WARN_LEVEL, Logger

_LEVELS = {
    DEBUG_LEVEL: logging.DEBUG,
    INFO_LEVEL: logging.INFO,
    WARN_LEVEL: logging.WARNING,
    ERROR_LEVEL: logging.ERROR,
    PANIC_LEVEL: logging.CRITICAL,
}
_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "panic",
}
_counter = itertools.count()


def _sprint(args: tuple) -> str:
    out = ""
    for i, arg in enumerate(args):
        if i and not isinstance(arg, str) and not isinstance(args[i - 1], str):
            out += " "
        out += str(arg)
    return out


def _sprintf(template: str, args: tuple) -> str:
    if not args:
        return template
    try:
        return template.replace("%v", "%s") % args
    except (TypeError, ValueError):
        return template + " " + _sprint(args)


def _pairs(args: tuple) -> dict[str, Any]:
    return {str(args[i]): args[i + 1] for i in range(0, len(args) - 1, 2)}


class _Formatter(logging.Formatter):
    def __init__(self, json_format: bool, caller: bool) -> None:
        super().__init__()
        self.json_format = json_format
        self.caller = caller

    def format(self, record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created).astimezone()
        ts = moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}" + moment.strftime("%z")
        level = _LEVEL_NAMES.get(record.levelno, "info")
        where = f"{record.filename}:{record.lineno}"
        fields = getattr(record, "fields", {})
        if self.json_format:
            entry: dict[str, Any] = {"level": level, "ts": ts}
            if self.caller:
                entry["caller"] = where
            entry["msg"] = record.getMessage()
            entry.update(fields)
            return json.dumps(entry, default=str)
        parts = [ts, level] + ([where] if self.caller else []) + [record.getMessage()]
        if fields:
            parts.append(json.dumps(fields, default=str))
        return "\t".join(parts)


class MyLogger(Logger):
    """Logger with file rotation by size, backup count and age, echoing to stdout."""

    def __init__(self, path: str, level: str, json_format: bool) -> None:
        self.path = path or os.path.join(tempfile.gettempdir(), "tradekit-rotlog.log")
        self.level = level
        self.max_file_size = 512
        self.max_backups = 10
        self.max_age = 60
        self.compress = False
        self.caller = True
        self.json_format = json_format
        self.stdout = True
        self._logger = logging.getLogger(f"tradekit.rotlog.{next(_counter)}")
        self._logger.propagate = False
        self._logger.setLevel(_LEVELS.get(level, logging.INFO))
        formatter = _Formatter(json_format, self.caller)
        file_handler = RotatingFileHandler(
            self.path,
            maxBytes=self.max_file_size * 1024 * 1024,
            backupCount=self.max_backups,
            encoding="utf-8",
            delay=True,
        )
        file_handler.rotator = self._rotate
        file_handler.setFormatter(formatter)
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)
        self._logger.addHandler(stream_handler)

    def _rotate(self, source: str, dest: str) -> None:
        if self.compress:
            with open(source, "rb") as src, gzip.open(dest + ".gz", "wb") as dst:
                shutil.copyfileobj(src, dst)
            os.remove(source)
        else:
            os.replace(source, dest)
        limit = time.time() - self.max_age * 86400
        folder = os.path.dirname(os.path.abspath(self.path))
        base = os.path.basename(self.path)
        for entry in os.scandir(folder):
            if entry.name.startswith(base + ".") and entry.stat().st_mtime < limit:
                os.remove(entry.path)

    def _emit(self, level: int, msg: str, fields: dict[str, Any] | None = None) -> None:
        self._logger.log(level, "%s", msg, extra={"fields": fields or {}}, stacklevel=3)

    def debug(self, *args) -> None:
        self._emit(logging.DEBUG, _sprint(args))

    def debugf(self, template: str, *args) -> None:
        self._emit(logging.DEBUG, _sprintf(template, args))

    def debugw(self, msg: str, *args) -> None:
        self._emit(logging.DEBUG, msg, _pairs(args))

    def info(self, *args) -> None:
        self._emit(logging.INFO, _sprint(args))

    def infof(self, template: str, *args) -> None:
        self._emit(logging.INFO, _sprintf(template, args))

    def infow(self, msg: str, *args) -> None:
        self._emit(logging.INFO, msg, _pairs(args))

    def warn(self, *args) -> None:
        self._emit(logging.WARNING, _sprint(args))

    def warnf(self, template: str, *args) -> None:
        self._emit(logging.WARNING, _sprintf(template, args))

    def warnw(self, msg: str, *args) -> None:
        self._emit(logging.WARNING, msg, _pairs(args))

    def error(self, *args) -> None:
        self._emit(logging.ERROR, _sprint(args))

    def errorf(self, template: str, *args) -> None:
        self._emit(logging.ERROR, template, _pairs(args))

    def errorw(self, msg: str, *args) -> None:
        self._emit(logging.ERROR, msg, _pairs(args))

    def sync(self) -> None:
        for handler in self._logger.handlers:
            handler.flush()

    def close(self) -> None:
        for handler in list(self._logger.handlers):
            handler.close()
            self._logger.removeHandler(handler)