from datetime import date

from schoolhub.core import analytics


def rows(*entries):
    return [{"date": d, "status": s} for d, s in entries]


def test_percentage_rounds_half_up():
    assert analytics.percentage(5, 8) == 63  # 62.5
    assert analytics.percentage(1, 8) == 13  # 12.5
    assert analytics.percentage(2, 3) == 67
    assert analytics.percentage(0, 0) == 0


def test_late_is_not_present():
    present, total = analytics.count(rows(("2026-03-01", "present"), ("2026-03-01", "late"), ("2026-03-02", "absent")))
    assert (present, total) == (1, 3)


def test_monthly_covers_all_twelve_months():
    data = rows(("2026-01-05", "present"), ("2026-01-06", "absent"), ("2026-03-01", "present"), ("2025-01-05", "present"))
    months = analytics.monthly(data, 2026)

    assert [m["period"] for m in months][:3] == ["Jan", "Feb", "Mar"]
    assert len(months) == 12
    assert months[0] == {"period": "Jan", "present": 1, "total": 2, "percentage": 50}
    assert months[1]["total"] == 0
    assert months[2]["percentage"] == 100


def test_yearly_is_last_five_years_oldest_first():
    data = rows(("2022-05-01", "present"), ("2026-05-01", "absent"), ("2020-05-01", "present"))
    years = analytics.yearly(data, 2026)

    assert [y["period"] for y in years] == ["2022", "2023", "2024", "2025", "2026"]
    assert years[0]["percentage"] == 100
    assert years[-1]["percentage"] == 0


def test_comparison_pairs_months_with_previous_year():
    data = rows(("2026-10-01", "present"), ("2025-10-01", "absent"), ("2026-05-10", "present"))
    points = analytics.comparison(data, 2026, 10)

    assert [p["period"] for p in points] == ["May 2026", "Jun 2026", "Jul 2026", "Aug 2026", "Sep 2026", "Oct 2026"]
    assert points[-1] == {"period": "Oct 2026", "current": 100, "previous": 0}
    assert points[0]["current"] == 100


def test_comparison_crosses_year_boundary():
    points = analytics.comparison([], 2026, 2)
    assert points[0]["period"] == "Sep 2025"
    assert points[-1]["period"] == "Feb 2026"


def test_trend_dead_band():
    def series(prev, last):
        return [{"current": prev}, {"current": last}]

    assert analytics.trend(series(80, 83)) == ("up", 3)
    assert analytics.trend(series(80, 82)) == ("stable", 2)
    assert analytics.trend(series(80, 78)) == ("stable", 2)
    assert analytics.trend(series(80, 70)) == ("down", 10)
    assert analytics.trend([{"current": 50}]) == ("stable", 0)


def test_best_worst_and_average_ignore_empty_months():
    months = analytics.monthly(
        rows(("2026-01-01", "present"), ("2026-02-01", "absent"), ("2026-02-02", "present")),
        2026,
    )

    assert analytics.best_month(months)["period"] == "Jan"
    assert analytics.worst_month(months)["period"] == "Feb"
    assert analytics.average_percentage(months) == 75


def test_no_data_means_no_best_month():
    months = analytics.monthly([], 2026)
    assert analytics.best_month(months) is None
    assert analytics.worst_month(months) is None
    assert analytics.average_percentage(months) == 0


def test_daily_trend_window_and_grouping():
    today = date(2026, 10, 18)
    data = rows(
        ("2026-10-17", "present"),
        ("2026-10-17", "absent"),
        ("2026-10-01", "present"),
        ("2026-08-01", "present"),
    )
    points = analytics.daily_trend(data, today)

    assert [p["date"] for p in points] == [date(2026, 10, 1), date(2026, 10, 17)]
    assert points[1]["percentage"] == 50
