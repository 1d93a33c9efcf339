"""
Barrière de quotas : pourcentages, restes, autorisation et messages
"""
import pytest

from edu_app.models.subscription import (
    ORGANIZATION_LIMITS,
    PLAN_LIMITS,
    Plan,
    PlanLimits,
    ResourceType,
    UsageCounters,
)
from edu_app.services.usage_limit_service import (
    available_purchased_minutes,
    check_and_describe,
    limit_reached_message,
    next_plan,
    percentage,
    split_consumption,
)


@pytest.mark.parametrize("used,limit", [(0, 2), (1, 2), (2, 2), (45, 30), (2.5, 3), (1000, 1)])
def test_percentage_bounded(used, limit):
    assert 0 <= percentage(used, limit) <= 100


def test_percentage_capped_when_limit_lowered():
    assert percentage(12, 10) == 100


@pytest.mark.parametrize("used", [0, 1, 7.5])
def test_percentage_zero_limit(used):
    assert percentage(used, 0) == 0


def test_premium_course_limit_reached():
    usage = UsageCounters(courses_created=10)
    check = check_and_describe(ResourceType.course, usage, PLAN_LIMITS[Plan.premium], plan=Plan.premium)

    assert check.allowed is False
    assert check.remaining == 0
    assert check.percentage == 100
    assert "10 cours" in check.message
    assert "Pro" in check.message
    assert "30 cours" in check.message


def test_basic_under_limit_allowed():
    usage = UsageCounters(exercises_created=1)
    check = check_and_describe(ResourceType.exercise, usage, PLAN_LIMITS[Plan.basic])

    assert check.allowed is True
    assert check.remaining == 1
    assert check.percentage == 50
    assert check.message is None
    assert check.purchased_remaining is None


def test_remaining_never_negative():
    usage = UsageCounters(fiches_created=5)
    check = check_and_describe(ResourceType.fiche, usage, PLAN_LIMITS[Plan.basic])
    assert check.remaining == 0
    assert check.allowed is False


@pytest.mark.parametrize("resource", [ResourceType.course, ResourceType.exercise, ResourceType.fiche])
@pytest.mark.parametrize("used", [0, 1, 2, 3])
def test_allowed_iff_under_limit(resource, used):
    usage = UsageCounters(**{
        "courses_created": used,
        "exercises_created": used,
        "fiches_created": used,
    })
    limits = PLAN_LIMITS[Plan.basic]
    check = check_and_describe(resource, usage, limits, purchased_balance=50)
    assert check.allowed == (used < limits.limit(resource))


def test_ai_minutes_allowance_exhausted_but_purchased_balance():
    usage = UsageCounters(ai_minutes_used=3)
    check = check_and_describe(ResourceType.ai_minutes, usage, PLAN_LIMITS[Plan.basic], purchased_balance=10)

    assert check.allowed is True
    assert check.remaining == 0
    assert check.purchased_remaining == 10


def test_ai_minutes_paid_plan_without_purchase():
    usage = UsageCounters(ai_minutes_used=0)
    check = check_and_describe(ResourceType.ai_minutes, usage, PLAN_LIMITS[Plan.premium], plan=Plan.premium)

    assert check.allowed is False
    assert check.percentage == 0
    assert "packs de minutes" in check.message


def test_pro_limit_message_has_no_upgrade():
    message = limit_reached_message(ResourceType.exercise, Plan.pro, 30)
    assert "plan le plus élevé" in message


def test_next_plan_order():
    assert next_plan(Plan.basic) == Plan.premium
    assert next_plan(Plan.premium) == Plan.pro
    assert next_plan(Plan.pro) is None


def test_organization_limits_always_allowed():
    usage = UsageCounters(courses_created=5000)
    check = check_and_describe(ResourceType.course, usage, ORGANIZATION_LIMITS)
    assert check.allowed is True
    assert check.is_unlimited is True


def test_zero_limit_is_exhausted():
    limits = PlanLimits(courses=0, exercises=0, fiches=0, ai_minutes=0, max_days_per_course=10)
    check = check_and_describe(ResourceType.course, UsageCounters(), limits)
    assert check.allowed is False
    assert check.percentage == 0
    assert check.remaining == 0


def test_split_consumption_allowance_first():
    usage = UsageCounters(ai_minutes_used=1)
    from_allowance, from_purchased = split_consumption(5, usage, PLAN_LIMITS[Plan.basic], purchased_balance=10)
    assert from_allowance == 2
    assert from_purchased == 3


def test_split_consumption_shortfall():
    usage = UsageCounters(ai_minutes_used=3)
    from_allowance, from_purchased = split_consumption(8, usage, PLAN_LIMITS[Plan.basic], purchased_balance=5)
    assert from_allowance == 0
    assert from_purchased == 5


@pytest.mark.parametrize("used,remaining,allowed", [(2.5, 0.5, True), (2.9, pytest.approx(0.1), True), (3.0, 0, False)])
def test_fractional_ai_minutes_remaining(used, remaining, allowed):
    usage = UsageCounters(ai_minutes_used=used)
    check = check_and_describe(ResourceType.ai_minutes, usage, PLAN_LIMITS[Plan.basic])

    assert check.remaining == remaining
    assert check.allowed is allowed
    assert check.allowed == (check.remaining > 0)


def test_available_purchased_minutes_after_overflow():
    limits = PLAN_LIMITS[Plan.basic]
    assert available_purchased_minutes(UsageCounters(ai_minutes_used=2), limits, 10) == 10
    assert available_purchased_minutes(UsageCounters(ai_minutes_used=7.5), limits, 10) == 5.5
    assert available_purchased_minutes(UsageCounters(ai_minutes_used=50), limits, 10) == 0


def test_purchased_total_alone_does_not_unlock_once_consumed():
    usage = UsageCounters(ai_minutes_used=20)
    limits = PLAN_LIMITS[Plan.premium]
    balance = available_purchased_minutes(usage, limits, 10)
    check = check_and_describe(ResourceType.ai_minutes, usage, limits, purchased_balance=balance, plan=Plan.premium)

    assert check.allowed is False
    assert check.purchased_remaining == 0
