from datetime import date

import pytest

from fintrack.core.aggregation import (
    CategoryTotal,
    MixedOwnershipError,
    average_per_day,
    category_totals,
    daily_totals,
    day_label,
    summarize,
    top_category,
    total_spent,
)


def exp(amount, category="food", day="2026-10-01", user_id=None):
    return {"amount": amount, "category": category, "expense_date": day, "user_id": user_id}


def test_empty_list_yields_zeros():
    summary = summarize([])
    assert summary.total_spent == 0
    assert summary.average_per_day == 0
    assert summary.category_totals == []
    assert summary.daily_totals == []
    assert summary.top_category == CategoryTotal("", 0.0)


def test_single_category_totals_and_top():
    expenses = [exp(10), exp(20), exp(30)]
    totals = category_totals(expenses)
    assert [(c.name, c.value) for c in totals] == [("food", 60)]
    top = top_category(totals)
    assert (top.name, top.value) == ("food", 60)


def test_three_distinct_days_average():
    expenses = [
        exp(5, day="2026-10-01"),
        exp(15, day="2026-10-02"),
        exp(10, day="2026-10-03"),
    ]
    days = daily_totals(expenses)
    assert len(days) == 3
    assert average_per_day(total_spent(expenses), days) == 10


def test_category_totals_sum_to_total():
    expenses = [
        exp(12.5, "food"),
        exp(7.25, "transport"),
        exp(3.1, "bills"),
        exp(0.15, "food"),
        exp(99.99, "mystery"),
    ]
    totals = category_totals(expenses)
    assert sum(c.value for c in totals) == pytest.approx(total_spent(expenses))


def test_category_order_is_first_seen():
    expenses = [exp(1, "transport"), exp(5, "food"), exp(1, "transport"), exp(1, "bills")]
    assert [c.name for c in category_totals(expenses)] == ["transport", "food", "bills"]


def test_top_category_tie_keeps_first_seen():
    totals = [CategoryTotal("bills", 20), CategoryTotal("food", 20)]
    assert top_category(totals).name == "bills"


def test_top_category_ignores_zero_totals():
    assert top_category([CategoryTotal("food", 0)]).name == ""


def test_daily_labels_and_merging():
    expenses = [
        exp(5, day=date(2026, 10, 3)),
        exp(4, day="2026-10-01"),
        exp(1, day="2026-10-03"),
    ]
    days = daily_totals(expenses)
    assert [(d.name, d.amount) for d in days] == [("Oct 03", 6), ("Oct 01", 4)]


def test_same_day_in_different_years_shares_bucket():
    days = daily_totals([exp(1, day="2025-10-01"), exp(2, day="2026-10-01")])
    assert [(d.name, d.amount) for d in days] == [("Oct 01", 3)]


def test_day_label_accepts_timestamps():
    assert day_label("2026-01-09T10:00:00") == "Jan 09"


class Row:
    def __init__(self, amount, category, expense_date, user_id):
        self.id = "r1"
        self.amount = amount
        self.category = category
        self.expense_date = expense_date
        self.user_id = user_id


def test_summarize_accepts_objects():
    rows = [Row(8, "food", date(2026, 10, 1), "u1"), Row(2, "bills", date(2026, 10, 2), "u1")]
    summary = summarize(rows, user_id="u1")
    assert summary.total_spent == 10
    assert summary.average_per_day == 5
    assert summary.top_category.name == "food"


def test_summarize_refuses_rows_of_other_users():
    rows = [exp(1, user_id="u1"), exp(2, user_id="u2")]
    with pytest.raises(MixedOwnershipError):
        summarize(rows, user_id="u1")
