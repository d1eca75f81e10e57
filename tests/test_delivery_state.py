"""Unit tests for delivery entity state transitions (State Pattern)."""

import copy
from datetime import datetime, timezone

import pytest

from tripdrop.domain.entities import DeliveryRequest
from tripdrop.domain.enums import DeliveryStatus, PaymentStatus
from tripdrop.domain.errors import (
    DeliveryUnavailable,
    InvalidOTP,
    InvalidTransition,
    Unauthorized,
)

SENDER, TRAVELER, STRANGER = 1, 2, 3
OTP = "482913"


def _accepted() -> DeliveryRequest:
    d = DeliveryRequest(id=1, sender_id=SENDER)
    d.accept(TRAVELER, OTP)
    return d


def _in_transit() -> DeliveryRequest:
    d = _accepted()
    d.start(TRAVELER)
    return d


class TestDeliveryStateMachine:
    def test_initial_state(self):
        d = DeliveryRequest()
        assert d.status == DeliveryStatus.PENDING
        assert d.traveler_id is None
        assert d.otp is None
        assert d.payment_status == PaymentStatus.PENDING
        assert d.delivered_at is None

    # ── Valid transitions ─────────────────────────────────────────

    def test_accept_assigns_traveler_and_otp(self):
        d = _accepted()
        assert d.status == DeliveryStatus.ACCEPTED
        assert d.traveler_id == TRAVELER
        assert d.otp == OTP

    def test_start(self):
        assert _in_transit().status == DeliveryStatus.IN_TRANSIT

    def test_complete_finalises_payment_and_timestamp(self):
        d = _in_transit()
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        d.complete(TRAVELER, OTP, now=now)
        assert d.status == DeliveryStatus.DELIVERED
        assert d.delivered_at == now
        assert d.payment_status == PaymentStatus.COMPLETED

    def test_complete_defaults_timestamp_to_now(self):
        d = _in_transit()
        d.complete(TRAVELER, OTP)
        assert d.delivered_at is not None

    # ── Invalid transitions ───────────────────────────────────────

    def test_transition_table_forbids_skipping(self):
        d = DeliveryRequest()
        with pytest.raises(InvalidTransition):
            d.transition_to(DeliveryStatus.DELIVERED)

    def test_transition_table_forbids_going_back(self):
        d = _in_transit()
        with pytest.raises(InvalidTransition):
            d.transition_to(DeliveryStatus.ACCEPTED)

    def test_second_accept_is_unavailable(self):
        d = _accepted()
        with pytest.raises(DeliveryUnavailable):
            d.accept(STRANGER, "000000")
        assert d.traveler_id == TRAVELER
        assert d.otp == OTP

    def test_sender_cannot_accept_own_delivery(self):
        d = DeliveryRequest(sender_id=SENDER)
        with pytest.raises(Unauthorized):
            d.accept(SENDER, OTP)
        assert d.status == DeliveryStatus.PENDING

    def test_start_pending_is_invalid_transition(self):
        d = DeliveryRequest(sender_id=SENDER)
        before = copy.deepcopy(d)
        with pytest.raises(InvalidTransition):
            d.start(TRAVELER)
        assert d == before

    def test_start_by_stranger_unauthorized(self):
        d = _accepted()
        with pytest.raises(Unauthorized):
            d.start(STRANGER)
        assert d.status == DeliveryStatus.ACCEPTED

    def test_start_twice_is_invalid_transition(self):
        d = _in_transit()
        with pytest.raises(InvalidTransition):
            d.start(TRAVELER)

    def test_complete_before_start_is_invalid_transition(self):
        d = _accepted()
        with pytest.raises(InvalidTransition):
            d.complete(TRAVELER, OTP)
        assert d.status == DeliveryStatus.ACCEPTED

    def test_complete_by_stranger_unauthorized(self):
        d = _in_transit()
        with pytest.raises(Unauthorized):
            d.complete(STRANGER, OTP)

    def test_wrong_otp_leaves_delivery_untouched(self):
        d = _in_transit()
        before = copy.deepcopy(d)
        with pytest.raises(InvalidOTP):
            d.complete(TRAVELER, "000001")
        assert d == before
        assert d.status == DeliveryStatus.IN_TRANSIT

    def test_delivered_is_terminal(self):
        d = _in_transit()
        d.complete(TRAVELER, OTP)
        with pytest.raises(InvalidTransition):
            d.complete(TRAVELER, OTP)
        with pytest.raises(InvalidTransition):
            d.start(TRAVELER)
        with pytest.raises(DeliveryUnavailable):
            d.accept(STRANGER, OTP)
