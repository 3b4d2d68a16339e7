"""Reward eligibility rules and their evaluation order."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from app.core.config import settings
from app.services.eligibility import CustomerSnapshot, evaluate, parse_criteria

# 2026-03-15 is a Sunday.
SUNDAY_MORNING = datetime(2026, 3, 15, 10, 30, tzinfo=timezone.utc)


def _snapshot(**overrides) -> CustomerSnapshot:
    values = {
        "customer_id": 1,
        "loyalty_points": 50,
        "purchases_this_month": 1,
        "lifetime_spend": Decimal("99.99"),
        "membership_tier": "silver",
        "birth_date": date(1990, 7, 4),
        "join_date": date(2025, 1, 1),
        "referrals_made": 0,
    }
    values.update(overrides)
    return CustomerSnapshot(**values)


def test_no_criteria_and_no_cost_is_eligible() -> None:
    result = evaluate(_snapshot(), None, now=SUNDAY_MORNING)

    assert result.eligible is True
    assert result.reason is None


def test_first_failing_rule_in_fixed_order_is_reported() -> None:
    criteria = {"minPurchasesMonthly": 3, "minPoints": 1000, "minReferrals": 2}

    result = evaluate(_snapshot(), criteria, now=SUNDAY_MORNING)

    assert result.eligible is False
    assert result.reason == "Eligibility requires 1000 points."


def test_purchases_rule_message() -> None:
    result = evaluate(_snapshot(), {"min_purchases_monthly": 3}, now=SUNDAY_MORNING)

    assert result.reason == "Requires 3 purchases this month."


def test_cumulative_spend_rule() -> None:
    assert evaluate(_snapshot(), {"cumulativeSpendTotal": 100}, now=SUNDAY_MORNING).reason == "Requires total spend of $100.00."
    assert evaluate(_snapshot(lifetime_spend=Decimal("100.00")), {"cumulativeSpendTotal": 100}, now=SUNDAY_MORNING).eligible


def test_spend_message_uses_configured_currency(monkeypatch) -> None:
    monkeypatch.setattr(settings, "currency", "eur")
    assert evaluate(_snapshot(), {"cumulativeSpendTotal": 100}, now=SUNDAY_MORNING).reason == "Requires total spend of €100.00."

    monkeypatch.setattr(settings, "currency", "PLN")
    assert evaluate(_snapshot(), {"cumulativeSpendTotal": 100}, now=SUNDAY_MORNING).reason == "Requires total spend of 100.00 PLN."


def test_tier_membership_rule() -> None:
    criteria = {"requiredCustomerTier": ["gold", "platinum"]}

    assert evaluate(_snapshot(), criteria, now=SUNDAY_MORNING).reason == "Requires membership tier: gold or platinum."
    assert evaluate(_snapshot(membership_tier="gold"), criteria, now=SUNDAY_MORNING).eligible


def test_point_cost_is_checked_last() -> None:
    criteria = {"allowedDaysOfWeek": [1, 2, 3]}

    result = evaluate(_snapshot(loyalty_points=50), criteria, points_cost=200, now=SUNDAY_MORNING)

    assert result.reason == "Not valid on this day of the week."


def test_insufficient_points_for_cost() -> None:
    result = evaluate(_snapshot(loyalty_points=50), {}, points_cost=200, now=SUNDAY_MORNING)

    assert result.reason == "Insufficient points. Need 200, have 50."


def test_point_criteria_skipped_for_already_paid_claims() -> None:
    result = evaluate(
        _snapshot(loyalty_points=0),
        {"minPoints": 500},
        points_cost=200,
        now=SUNDAY_MORNING,
        include_point_criteria=False,
    )

    assert result.eligible is True


def test_birthday_is_matched_on_the_utc_calendar() -> None:
    snapshot = _snapshot(birth_date=date(1990, 3, 15))
    # 23:30 on the 14th in UTC-5 is already the 15th in UTC.
    late_evening_local = datetime(2026, 3, 14, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

    assert evaluate(snapshot, {"isBirthdayOnly": True}, now=late_evening_local).eligible
    assert evaluate(snapshot, {"isBirthdayOnly": True}, now=SUNDAY_MORNING - timedelta(days=1)).reason == "Only valid on your birthday."


def test_leap_day_birthday_falls_on_feb_28_in_common_years() -> None:
    snapshot = _snapshot(birth_date=date(2000, 2, 29))

    assert evaluate(snapshot, {"isBirthdayOnly": True}, now=datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)).eligible
    assert not evaluate(snapshot, {"isBirthdayOnly": True}, now=datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)).eligible
    assert evaluate(snapshot, {"isBirthdayOnly": True}, now=datetime(2028, 2, 29, 9, 0, tzinfo=timezone.utc)).eligible
    assert not evaluate(snapshot, {"isBirthdayOnly": True}, now=datetime(2028, 2, 28, 9, 0, tzinfo=timezone.utc)).eligible


def test_birth_month_rule() -> None:
    assert evaluate(_snapshot(birth_date=date(1990, 3, 2)), {"isBirthMonthOnly": True}, now=SUNDAY_MORNING).eligible
    assert (
        evaluate(_snapshot(), {"isBirthMonthOnly": True}, now=SUNDAY_MORNING).reason
        == "Only valid during your birth month."
    )


def test_allowed_days_use_zero_for_sunday() -> None:
    assert evaluate(_snapshot(), {"allowedDaysOfWeek": [0, 6]}, now=SUNDAY_MORNING).eligible


def test_time_windows_are_inclusive_and_ored() -> None:
    criteria = {
        "activeTimeWindows": [
            {"startTime": "07:00", "endTime": "08:00"},
            {"startTime": "09:00", "endTime": "10:30"},
        ]
    }

    assert evaluate(_snapshot(), criteria, now=SUNDAY_MORNING).eligible
    assert (
        evaluate(_snapshot(), criteria, now=SUNDAY_MORNING + timedelta(minutes=1)).reason
        == "Not valid at the current time."
    )


def test_time_window_day_filter() -> None:
    criteria = {"activeTimeWindows": [{"startTime": "09:00", "endTime": "11:00", "daysOfWeek": [1, 2, 3, 4, 5]}]}

    assert evaluate(_snapshot(), criteria, now=SUNDAY_MORNING).reason == "Not valid at the current time."


def test_valid_date_range_is_inclusive() -> None:
    assert evaluate(_snapshot(), {"validDateRange": {"endDate": "2026-03-15"}}, now=SUNDAY_MORNING).eligible
    assert (
        evaluate(_snapshot(), {"validDateRange": {"startDate": "2026-03-16"}}, now=SUNDAY_MORNING).reason
        == "Reward not active until 2026-03-16."
    )
    assert (
        evaluate(_snapshot(), {"validDateRange": {"endDate": "2026-03-14"}}, now=SUNDAY_MORNING).reason
        == "Reward expired on 2026-03-14."
    )


def test_sign_up_bonus_window() -> None:
    assert evaluate(_snapshot(join_date=date(2026, 3, 10)), {"isSignUpBonus": True}, now=SUNDAY_MORNING).eligible
    assert (
        evaluate(_snapshot(join_date=date(2026, 3, 1)), {"isSignUpBonus": True}, now=SUNDAY_MORNING).reason
        == "Sign up bonus conditions not met."
    )


def test_malformed_criteria_is_not_eligible() -> None:
    result = evaluate(_snapshot(), {"allowedDaysOfWeek": [9]}, now=SUNDAY_MORNING)

    assert result.eligible is False
    assert result.reason == "Reward criteria are misconfigured."


def test_parse_criteria_builds_predicates_in_order() -> None:
    predicates = parse_criteria({"isSignUpBonus": True, "minPoints": 10, "allowedDaysOfWeek": [1]})

    assert [type(p).__name__ for p in predicates] == ["MinPoints", "AllowedDaysOfWeek", "SignUpBonus"]
