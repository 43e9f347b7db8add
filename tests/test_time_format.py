from datetime import date, datetime

from certificados.shared.time import fmt_date, fmt_dt


def test_fmt_dt_no_seconds():
    dt = datetime(2024, 1, 2, 3, 4, 5)
    out = fmt_dt(dt)
    assert out == "02/01/2024 03:04"
    assert out.count(":") == 1


def test_fmt_date_day_first():
    assert fmt_date(datetime(2025, 12, 31, 23, 59)) == "31/12/2025"
    assert fmt_date(date(2025, 3, 4)) == "04/03/2025"
    assert fmt_date(None) == ""
