from datetime import date

from gaps import DateGap, find_date_gaps


def test_single_gap():
    assert find_date_gaps(["2026-01-01", "2026-01-04"]) == [
        DateGap(start=date(2026, 1, 2), end=date(2026, 1, 3), days=2)
    ]


def test_no_gaps_for_short_input():
    assert find_date_gaps([]) == []
    assert find_date_gaps(["2026-01-01"]) == []


def test_consecutive_dates_have_no_gap():
    assert find_date_gaps([date(2026, 1, 1), date(2026, 1, 2), date(2026, 1, 3)]) == []


def test_gap_across_year_boundary():
    assert find_date_gaps(["2025-12-31", "2026-01-02"]) == [
        DateGap(start=date(2026, 1, 1), end=date(2026, 1, 1), days=1)
    ]


def test_gap_across_dst_change():
    gaps = find_date_gaps(["2026-03-27", "2026-03-31"])
    assert gaps == [DateGap(start=date(2026, 3, 28), end=date(2026, 3, 30), days=3)]


def test_multiple_gaps_in_order():
    gaps = find_date_gaps(["2026-01-01", "2026-01-03", "2026-01-04", "2026-01-10"])
    assert [(g.start, g.days) for g in gaps] == [
        (date(2026, 1, 2), 1),
        (date(2026, 1, 5), 5),
    ]
