"""Process-wide logging facade that forwards to an installed logger."""

from __future__ import annotations

from abc import ABC, abstractmethod

DEBUG_LEVEL = "debug"
INFO_LEVEL = "info"
WARN_LEVEL = "warn"
ERROR_LEVEL = "error"
PANIC_LEVEL = "panic"


class Logger(ABC):
    """Plain, templated (``…f``) and key/value (``…w``) logging at four levels."""

    @abstractmethod
    def debug(self, *args) -> None: ...

    @abstractmethod
    def debugf(self, template: str, *args) -> None: ...

    @abstractmethod
    def debugw(self, msg: str, *args) -> None: ...

    @abstractmethod
    def info(self, *args) -> None: ...

    @abstractmethod
    def infof(self, template: str, *args) -> None: ...

    @abstractmethod
    def infow(self, msg: str, *args) -> None: ...

    @abstractmethod
    def warn(self, *args) -> None: ...

    @abstractmethod
    def warnf(self, template: str, *args) -> None: ...

    @abstractmethod
    def warnw(self, msg: str, *args) -> None: ...

    @abstractmethod
    def error(self, *args) -> None: ...

    @abstractmethod
    def errorf(self, template: str, *args) -> None: ...

    @abstractmethod
    def errorw(self, msg: str, *args) -> None: ...

    @abstractmethod
    def sync(self) -> None: ...


class _Installed:
    logger: Logger | None = None


_installed = _Installed()


def set_logger(logger: Logger | None) -> Logger | None:
    """Install the logger the module functions forward to; None silences them.

    Returns the logger that was installed before.
    """
    previous = _installed.logger
    _installed.logger = logger
    return previous


def debug(*args) -> None:
    if (logger := _installed.logger) is not None:
        logger.debug(*args)


def debugf(template: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.debugf(template, *args)


def debugw(msg: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.debugw(msg, *args)


def info(*args) -> None:
    if (logger := _installed.logger) is not None:
        logger.info(*args)


def infof(template: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.infof(template, *args)


def infow(msg: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.infow(msg, *args)


def warn(*args) -> None:
    if (logger := _installed.logger) is not None:
        logger.warn(*args)


def warnf(template: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.warnf(template, *args)


def warnw(msg: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.warnw(msg, *args)


def error(*args) -> None:
    if (logger := _installed.logger) is not None:
        logger.error(*args)


def errorf(template: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.errorf(template, *args)


def errorw(msg: str, *args) -> None:
    if (logger := _installed.logger) is not None:
        logger.errorw(msg, *args)


def sync() -> None:
    if (logger := _installed.logger) is not None:
        logger.sync()