"""Reward eligibility evaluation.

A reward's criteria document is parsed into an ordered list of predicates.
Evaluation stops at the first failing predicate and reports its reason, so the
order below is also the order in which customers see failure messages:

1. minimum points balance
2. minimum purchases this month
3. cumulative lifetime spend
4. minimum referral count
5. required membership tier
6. birthday / birth month (UTC calendar)
7. allowed days of week
8. active time windows
9. valid date range
10. sign-up bonus window
11. enough points to pay the reward's cost

Days of week use 0 for Sunday through 6 for Saturday. All calendar checks are
done in UTC.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Protocol

from pydantic import ValidationError

from app.core.config import settings
from app.schemas.reward import RewardCriteria, TimeWindow
from app.services.pricing import format_money
from app.utils.time import as_utc, js_weekday, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerSnapshot:
    """Point-in-time view of the customer activity the criteria look at."""

    customer_id: int
    loyalty_points: int
    purchases_this_month: int
    lifetime_spend: Decimal
    membership_tier: str | None = None
    birth_date: date | None = None
    join_date: date | None = None
    referrals_made: int = 0


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    reason: str | None = None


class Criterion(Protocol):
    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        """Return a failure reason, or None when the predicate holds."""


@dataclass(frozen=True)
class MinPoints:
    threshold: int

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if snapshot.loyalty_points < self.threshold:
            return f"Eligibility requires {self.threshold} points."
        return None


@dataclass(frozen=True)
class MinPurchasesThisMonth:
    threshold: int

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if snapshot.purchases_this_month < self.threshold:
            return f"Requires {self.threshold} purchases this month."
        return None


@dataclass(frozen=True)
class CumulativeSpend:
    threshold: Decimal

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if snapshot.lifetime_spend < self.threshold:
            return f"Requires total spend of {format_money(self.threshold)}."
        return None


@dataclass(frozen=True)
class MinReferrals:
    threshold: int

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if (snapshot.referrals_made or 0) < self.threshold:
            return f"Requires {self.threshold} referrals made."
        return None


@dataclass(frozen=True)
class TierMembership:
    tiers: tuple[str, ...]

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if not snapshot.membership_tier or snapshot.membership_tier not in self.tiers:
            return f"Requires membership tier: {' or '.join(self.tiers)}."
        return None



def _birthday_in(birth: date, year: int) -> date:
    """Feb 29 birthdays fall on Feb 28 in common years."""
    if (birth.month, birth.day) == (2, 29) and not calendar.isleap(year):
        return date(year, 2, 28)
    return birth.replace(year=year)

@dataclass(frozen=True)
class BirthdayOnly:
    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        birth = snapshot.birth_date
        if birth is None or _birthday_in(birth, now.year) != now.date():
            return "Only valid on your birthday."
        return None


@dataclass(frozen=True)
class BirthMonthOnly:
    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if snapshot.birth_date is None or snapshot.birth_date.month != now.month:
            return "Only valid during your birth month."
        return None


@dataclass(frozen=True)
class AllowedDaysOfWeek:
    days: frozenset[int]

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if js_weekday(now) not in self.days:
            return "Not valid on this day of the week."
        return None


@dataclass(frozen=True)
class ActiveTimeWindows:
    windows: tuple[TimeWindow, ...]

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        current = time(now.hour, now.minute)
        weekday = js_weekday(now)
        for window in self.windows:
            if window.days_of_week and weekday not in window.days_of_week:
                continue
            if window.start_time <= current <= window.end_time:
                return None
        return "Not valid at the current time."


@dataclass(frozen=True)
class ValidDateRange:
    start_date: date | None
    end_date: date | None

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        today = now.date()
        if self.start_date is not None and today < self.start_date:
            return f"Reward not active until {self.start_date.isoformat()}."
        if self.end_date is not None and today > self.end_date:
            return f"Reward expired on {self.end_date.isoformat()}."
        return None


@dataclass(frozen=True)
class SignUpBonus:
    window_days: int

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if snapshot.join_date is None:
            return "Sign up bonus conditions not met."
        if now.date() - snapshot.join_date > timedelta(days=self.window_days):
            return "Sign up bonus conditions not met."
        return None


@dataclass(frozen=True)
class PointsCost:
    cost: int

    def check(self, snapshot: CustomerSnapshot, now: datetime) -> str | None:
        if self.cost > 0 and snapshot.loyalty_points < self.cost:
            return f"Insufficient points. Need {self.cost}, have {snapshot.loyalty_points}."
        return None


def parse_criteria(
    document: Mapping[str, Any] | RewardCriteria | None,
    *,
    include_point_criteria: bool = True,
) -> list[Criterion]:
    """Build the ordered predicate list for a criteria document.

    Raises ``pydantic.ValidationError`` for a malformed document.
    """
    if document is None:
        return []
    criteria = document if isinstance(document, RewardCriteria) else RewardCriteria.model_validate(document)

    predicates: list[Criterion] = []
    if include_point_criteria and criteria.min_points:
        predicates.append(MinPoints(criteria.min_points))
    if criteria.min_purchases_monthly:
        predicates.append(MinPurchasesThisMonth(criteria.min_purchases_monthly))
    if criteria.cumulative_spend_total:
        predicates.append(CumulativeSpend(criteria.cumulative_spend_total))
    if criteria.min_referrals:
        predicates.append(MinReferrals(criteria.min_referrals))
    if criteria.required_customer_tier:
        predicates.append(TierMembership(tuple(criteria.required_customer_tier)))
    if criteria.is_birthday_only:
        predicates.append(BirthdayOnly())
    elif criteria.is_birth_month_only:
        predicates.append(BirthMonthOnly())
    if criteria.allowed_days_of_week:
        predicates.append(AllowedDaysOfWeek(frozenset(criteria.allowed_days_of_week)))
    if criteria.active_time_windows:
        predicates.append(ActiveTimeWindows(tuple(criteria.active_time_windows)))
    if criteria.valid_date_range and (criteria.valid_date_range.start_date or criteria.valid_date_range.end_date):
        predicates.append(ValidDateRange(criteria.valid_date_range.start_date, criteria.valid_date_range.end_date))
    if criteria.is_sign_up_bonus:
        predicates.append(SignUpBonus(settings.signup_bonus_window_days))
    return predicates


def evaluate(
    snapshot: CustomerSnapshot,
    criteria: Mapping[str, Any] | RewardCriteria | None,
    *,
    points_cost: int = 0,
    now: datetime | None = None,
    include_point_criteria: bool = True,
) -> EligibilityResult:
    """Evaluate a reward's criteria for a customer.

    ``include_point_criteria=False`` skips the minimum-balance and cost
    predicates; it is used when the reward's points were already paid by an
    earlier claim.
    """
    current = as_utc(now or utc_now())
    try:
        predicates = parse_criteria(criteria, include_point_criteria=include_point_criteria)
    except ValidationError:
        logger.exception("[ELIGIBILITY] Malformed criteria document: %r", criteria)
        return EligibilityResult(False, "Reward criteria are misconfigured.")

    if include_point_criteria:
        predicates.append(PointsCost(points_cost))

    for predicate in predicates:
        reason = predicate.check(snapshot, current)
        if reason is not None:
            return EligibilityResult(False, reason)
    return EligibilityResult(True)
