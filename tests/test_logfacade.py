import pytest

from tradekit import logfacade
from tradekit.logfacade import Logger


class _Recorder(Logger):
    def __init__(self):
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name, args))

    def debug(self, *args):
        self._record("debug", *args)

    def debugf(self, template, *args):
        self._record("debugf", template, *args)

    def debugw(self, msg, *args):
        self._record("debugw", msg, *args)

    def info(self, *args):
        self._record("info", *args)

    def infof(self, template, *args):
        self._record("infof", template, *args)

    def infow(self, msg, *args):
        self._record("infow", msg, *args)

    def warn(self, *args):
        self._record("warn", *args)

    def warnf(self, template, *args):
        self._record("warnf", template, *args)

    def warnw(self, msg, *args):
        self._record("warnw", msg, *args)

    def error(self, *args):
        self._record("error", *args)

    def errorf(self, template, *args):
        self._record("errorf", template, *args)

    def errorw(self, msg, *args):
        self._record("errorw", msg, *args)

    def sync(self):
        self._record("sync")


@pytest.fixture
def recorder():
    rec = _Recorder()
    logfacade.set_logger(rec)
    yield rec
    logfacade.set_logger(None)


def test_plain_calls_forward(recorder):
    logfacade.debug("a", 1)
    logfacade.info("b")
    logfacade.warn("c")
    logfacade.error("d")
    assert recorder.calls == [
        ("debug", ("a", 1)),
        ("info", ("b",)),
        ("warn", ("c",)),
        ("error", ("d",)),
    ]


def test_template_calls_forward(recorder):
    logfacade.debugf("x=%s", 1)
    logfacade.infof("y=%s", 2)
    logfacade.warnf("z")
    logfacade.errorf("e=%s", "boom")
    assert [name for name, _ in recorder.calls] == ["debugf", "infof", "warnf", "errorf"]
    assert recorder.calls[-1] == ("errorf", ("e=%s", "boom"))


def test_key_value_calls_forward(recorder):
    logfacade.debugw("msg", "field1", "value1")
    logfacade.infow("msg", "k", 2)
    logfacade.warnw("msg")
    logfacade.errorw("msg", "k", "v")
    logfacade.sync()
    assert recorder.calls[0] == ("debugw", ("msg", "field1", "value1"))
    assert recorder.calls[-1] == ("sync", ())
    assert len(recorder.calls) == 5


def test_unset_logger_drops_messages(recorder):
    logfacade.set_logger(None)
    logfacade.info("ignored")
    logfacade.errorw("ignored", "k", "v")
    logfacade.sync()
    assert recorder.calls == []


def test_logger_is_abstract():
    with pytest.raises(TypeError):
        Logger()