"""
Tests for reservation status transitions and confirmation numbers.
"""

import random
import re
from datetime import datetime, timedelta, timezone

import pytest

from booking_service.core.exceptions import DomainRuleViolation, InvalidStatusTransition
from booking_service.models import Reservation, ReservationStatus
from booking_service.services.lifecycle import (
    ReservationAction,
    apply_transition,
    can_be_cancelled,
    can_be_confirmed,
    generate_confirmation_number,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def reservation(status: ReservationStatus, starts_in: timedelta = timedelta(days=4)) -> Reservation:
    return Reservation(
        id=1,
        vehicle_id=1,
        start_date=NOW + starts_in,
        end_date=NOW + starts_in + timedelta(days=5),
        status=status,
    )


def test_confirm_pending():
    r = reservation(ReservationStatus.PENDING)

    assert apply_transition(r, ReservationAction.CONFIRM, NOW) == ReservationStatus.CONFIRMED
    assert r.status == ReservationStatus.CONFIRMED
    assert r.updated_at == NOW


@pytest.mark.parametrize(
    "status",
    [ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, ReservationStatus.COMPLETED],
)
def test_confirm_rejects_non_pending(status):
    r = reservation(status)

    with pytest.raises(InvalidStatusTransition) as exc_info:
        apply_transition(r, ReservationAction.CONFIRM, NOW)

    assert r.status == status
    assert exc_info.value.details["status"] == status.value
    assert isinstance(exc_info.value, DomainRuleViolation)


def test_cancel_confirmed_future():
    r = reservation(ReservationStatus.CONFIRMED)

    assert can_be_cancelled(r, NOW)
    apply_transition(r, ReservationAction.CANCEL, NOW)
    assert r.status == ReservationStatus.CANCELLED


@pytest.mark.parametrize("starts_in", [timedelta(0), timedelta(hours=-1), timedelta(days=-3)])
def test_cancel_rejects_started_rental(starts_in):
    """No cancelling once the rental is in progress or over."""
    r = reservation(ReservationStatus.CONFIRMED, starts_in=starts_in)

    assert not can_be_cancelled(r, NOW)
    with pytest.raises(InvalidStatusTransition):
        apply_transition(r, ReservationAction.CANCEL, NOW)
    assert r.status == ReservationStatus.CONFIRMED


@pytest.mark.parametrize(
    "status",
    [ReservationStatus.PENDING, ReservationStatus.CANCELLED, ReservationStatus.COMPLETED],
)
def test_cancel_rejects_non_confirmed(status):
    r = reservation(status)

    with pytest.raises(InvalidStatusTransition):
        apply_transition(r, ReservationAction.CANCEL, NOW)


def test_terminal_statuses():
    assert ReservationStatus.CANCELLED.is_terminal
    assert ReservationStatus.COMPLETED.is_terminal
    assert not ReservationStatus.PENDING.is_terminal
    assert not can_be_confirmed(reservation(ReservationStatus.CONFIRMED))


def test_confirmation_number_format():
    number = generate_confirmation_number("RF", NOW)

    assert re.fullmatch(r"RF20250601\d{4}", number)
    assert 1000 <= int(number[-4:]) <= 9999


def test_confirmation_number_uses_utc_date():
    """23:30 in UTC-5 is already the next day in UTC."""
    local = datetime(2025, 6, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

    assert generate_confirmation_number("RF", local).startswith("RF20250602")


def test_confirmation_number_random_suffix_is_injectable():
    a = generate_confirmation_number("XX", NOW, rng=random.Random(42))
    b = generate_confirmation_number("XX", NOW, rng=random.Random(42))

    assert a == b
    assert a.startswith("XX20250601")
