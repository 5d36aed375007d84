from datetime import timedelta

from tradekit.stats import Stats


def _lines(stats):
    return stats.format_result().splitlines()


def test_report_header_and_length():
    lines = _lines(Stats())
    assert lines[0] == "======================== RESULT ========================"
    assert len(lines) == 15


def test_duration_in_hours():
    lines = _lines(Stats(duration=timedelta(hours=1)))
    assert lines[3] == "Duration: \t\t\t1h0m0s"


def test_fractional_run_duration():
    lines = _lines(Stats(run_duration=timedelta(seconds=1, milliseconds=500)))
    assert lines[4] == "Run Duration: \t\t1.5s"


def test_integral_price_has_no_decimal_point():
    lines = _lines(Stats(entry_price=100.0, exit_price=2.5))
    assert lines[5] == "Entry Price: \t\t100"
    assert lines[6] == "Exit Price: \t\t2.5"


def test_percentages_are_scaled():
    lines = _lines(Stats(equity_return_pnt=0.1234))
    assert lines[10] == "Return [%]: \t\t12.3400%"


def test_percent_lines_end_with_sign():
    for line in _lines(Stats(ann_return=0.5, max_draw_down=0.25))[10:]:
        assert line.endswith("%")


def test_print_matches_format(capsys):
    stats = Stats(entry_equity=1.0, exit_equity=2.0, duration=timedelta(minutes=5))
    stats.print_result()
    assert capsys.readouterr().out == stats.format_result()