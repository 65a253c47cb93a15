# CampManager
# Copyright (C) 2025 CampManager contributors
#
# This file is part of CampManager.
#
# CampManager is free software: you can redistribute it and/or modify it under
# the terms of the GNU Affero General Public License (AGPL) version 3, as
# published by the Free Software Foundation, or (at your option) any later version.
#
# If you make this file available over a network, you must also make the
# complete source code available under the same license.
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from campmanager.accounting.ledger import (
    apply_discount,
    derive_status,
    get_payment_transactions,
    mark_payment_paid,
    payments_due_for_reminder,
    record_transaction,
    refresh_overdue_statuses,
    set_payment_status,
    update_payment_amount,
    update_payment_note,
)
from campmanager.models.accounting import Payment, PaymentStatus, PaymentTransaction
from campmanager.models.registration import ParticipationStatus
from campmanager.models.utils import get_sum
from campmanager.tests.unit.base import BaseTestCase


def transactions_total(payment):
    return get_sum(PaymentTransaction.objects.filter(payment=payment))


class TestRecordTransaction(BaseTestCase):
    """Test status derivation driven by recorded transactions"""

    def test_partial_then_full_payment(self):
        actor = self.admin_actor()
        payment = self.create_payment(amount="500.00")

        result = record_transaction(actor, payment.id, "300", "PLN", None, "transfer")
        payment.refresh_from_db()

        assert result.success
        assert payment.amount_paid == Decimal("300.00")
        assert payment.status == PaymentStatus.PARTIALLY_PAID
        assert payment.paid_at is None

        record_transaction(actor, payment.id, Decimal(200), "PLN", None, "cash")
        payment.refresh_from_db()

        assert payment.amount_paid == Decimal("500.00")
        assert payment.status == PaymentStatus.PAID
        assert payment.paid_at is not None
        assert payment.payment_method_used == "cash"
        assert transactions_total(payment) == payment.amount_paid

    def test_partial_payment_past_due(self):
        payment = self.create_payment(amount="500.00", due_date=timezone.localdate() - timedelta(days=1))

        record_transaction(self.admin_actor(), payment.id, "300", "PLN", None, "transfer")
        payment.refresh_from_db()

        assert payment.status == PaymentStatus.PARTIALLY_PAID_OVERDUE

    def test_currency_mismatch_is_accepted(self):
        payment = self.create_payment(amount="500.00", currency="PLN")

        result = record_transaction(self.admin_actor(), payment.id, "100", "EUR", None, "cash")

        assert result.success
        assert PaymentTransaction.objects.get(payment=payment).currency == "EUR"

    def test_unknown_payment(self):
        result = record_transaction(self.admin_actor(), 999999, "100", "PLN", None, "cash")

        assert not result.success
        assert result.code == "not_found"

    def test_guardian_cannot_record(self):
        payment = self.create_payment()
        guardian = payment.registration.participant.guardian

        result = record_transaction(self.actor(guardian), payment.id, "100", "PLN", None, "cash")

        assert result.code == "forbidden"
        assert not PaymentTransaction.objects.exists()

    @pytest.mark.parametrize(
        "amount", ["0", "-10", "abc", "NaN", "sNaN", "Infinity", "-Infinity", "1e12", "123456789012"]
    )
    def test_invalid_amount(self, amount):
        payment = self.create_payment()

        result = record_transaction(self.admin_actor(), payment.id, amount, "PLN", None, "cash")

        assert result.code == "invalid"
        assert not PaymentTransaction.objects.exists()

    def test_transactions_newest_first(self):
        actor = self.admin_actor()
        payment = self.create_payment(amount="500.00")
        today = timezone.localdate()
        record_transaction(actor, payment.id, "100", "PLN", today - timedelta(days=5), "cash")
        record_transaction(actor, payment.id, "100", "PLN", today, "cash")

        dates = [item.transaction_date for item in get_payment_transactions(payment.id)]

        assert dates == [today, today - timedelta(days=5)]


class TestDeriveStatus(BaseTestCase):
    def test_nothing_paid_keeps_status(self):
        payment = Payment(amount=Decimal(100), amount_paid=Decimal(0), status=PaymentStatus.OVERDUE)

        assert derive_status(payment) == PaymentStatus.OVERDUE

    def test_overpaid_is_paid(self):
        payment = Payment(amount=Decimal(100), amount_paid=Decimal(120), status=PaymentStatus.PENDING)

        assert derive_status(payment) == PaymentStatus.PAID


class TestMarkPaid(BaseTestCase):
    def test_remainder_recorded_as_transaction(self):
        actor = self.admin_actor()
        payment = self.create_payment(amount="500.00")
        record_transaction(actor, payment.id, "150", "PLN", None, "cash")

        result = mark_payment_paid(actor, payment.id, "transfer")
        payment.refresh_from_db()

        assert result.success
        assert payment.status == PaymentStatus.PAID
        assert payment.amount_paid == Decimal("500.00")
        assert payment.paid_at is not None
        remainder = PaymentTransaction.objects.get(payment=payment, payment_method="transfer")
        assert remainder.amount == Decimal("350.00")
        assert remainder.notes
        assert transactions_total(payment) == payment.amount

    def test_already_covered_adds_no_transaction(self):
        actor = self.admin_actor()
        payment = self.create_payment(amount="100.00")
        record_transaction(actor, payment.id, "100", "PLN", None, "cash")

        mark_payment_paid(actor, payment.id, "cash")

        assert PaymentTransaction.objects.filter(payment=payment).count() == 1


class TestSetPaymentStatus(BaseTestCase):
    """Test administrative status overrides"""

    def test_force_paid_reconciles(self):
        payment = self.create_payment(amount="500.00")

        set_payment_status(self.admin_actor(), payment.id, PaymentStatus.PAID)
        payment.refresh_from_db()

        assert payment.status == PaymentStatus.PAID
        assert payment.amount_paid == Decimal("500.00")
        assert payment.paid_at is not None
        assert transactions_total(payment) == Decimal("500.00")

    def test_force_pending_reverses(self):
        actor = self.admin_actor()
        payment = self.create_payment(amount="500.00")
        record_transaction(actor, payment.id, "200", "PLN", None, "cash")

        set_payment_status(actor, payment.id, PaymentStatus.PENDING)
        payment.refresh_from_db()

        assert payment.status == PaymentStatus.PENDING
        assert payment.amount_paid == Decimal(0)
        assert payment.paid_at is None
        assert transactions_total(payment) == Decimal(0)

    def test_cancel(self):
        payment = self.create_payment()

        set_payment_status(self.admin_actor(), payment.id, PaymentStatus.CANCELLED)
        payment.refresh_from_db()

        assert payment.status == PaymentStatus.CANCELLED
        assert not PaymentTransaction.objects.exists()

    def test_other_statuses_rejected(self):
        payment = self.create_payment()

        result = set_payment_status(self.admin_actor(), payment.id, PaymentStatus.OVERDUE)

        assert result.code == "invalid"


class TestDiscountAndAmount(BaseTestCase):
    def test_discount_recomputes_from_original(self):
        actor = self.admin_actor()
        payment = self.create_payment(amount="500.00")

        apply_discount(actor, payment.id, 20)
        payment.refresh_from_db()
        assert payment.amount == Decimal("400.00")
        assert payment.discount_percentage == Decimal(20)
        assert payment.original_amount == Decimal("500.00")

        apply_discount(actor, payment.id, 0)
        payment.refresh_from_db()
        assert payment.amount == Decimal("500.00")

    def test_discount_leaves_paid_state(self):
        actor = self.admin_actor()
        payment = self.create_payment(amount="500.00")
        mark_payment_paid(actor, payment.id, "cash")

        apply_discount(actor, payment.id, 50)
        payment.refresh_from_db()

        assert payment.amount == Decimal("250.00")
        assert payment.amount_paid == Decimal("500.00")
        assert payment.status == PaymentStatus.PAID

    @pytest.mark.parametrize("percentage", [-1, 101, "NaN", "Infinity"])
    def test_discount_out_of_range(self, percentage):
        payment = self.create_payment(amount="500.00")

        result = apply_discount(self.admin_actor(), payment.id, percentage)
        payment.refresh_from_db()

        assert result.code == "invalid"
        assert payment.amount == Decimal("500.00")

    def test_edit_amount(self):
        payment = self.create_payment(amount="500.00")

        update_payment_amount(self.admin_actor(), payment.id, "320.50")
        payment.refresh_from_db()

        assert payment.amount == Decimal("320.50")
        assert payment.original_amount == Decimal("500.00")
        assert payment.status == PaymentStatus.PENDING

    @pytest.mark.parametrize("amount", ["-1", "NaN", "Infinity", "1e12"])
    def test_invalid_amount_rejected(self, amount):
        payment = self.create_payment(amount="500.00")

        result = update_payment_amount(self.admin_actor(), payment.id, amount)
        payment.refresh_from_db()

        assert result.code == "invalid"
        assert payment.amount == Decimal("500.00")

    def test_note(self):
        payment = self.create_payment()

        update_payment_note(self.admin_actor(), payment.id, "paid at the bus stop")
        payment.refresh_from_db()

        assert payment.admin_notes == "paid at the bus stop"


class TestOverdueAndReminders(BaseTestCase):
    def test_refresh_overdue(self):
        yesterday = timezone.localdate() - timedelta(days=1)
        pending = self.create_payment(due_date=yesterday)
        partial = self.create_payment(due_date=yesterday, amount_paid=Decimal(100), status=PaymentStatus.PARTIALLY_PAID)
        future = self.create_payment()

        assert refresh_overdue_statuses() == 2

        pending.refresh_from_db()
        partial.refresh_from_db()
        future.refresh_from_db()
        assert pending.status == PaymentStatus.OVERDUE
        assert partial.status == PaymentStatus.PARTIALLY_PAID_OVERDUE
        assert future.status == PaymentStatus.PENDING

    def test_reminders_only_for_confirmed_open_payments(self):
        due = timezone.localdate() + timedelta(days=3)
        due_payment = self.create_payment(due_date=due)
        self.create_payment(due_date=due, status=PaymentStatus.PAID)
        self.create_payment(due_date=timezone.localdate() + timedelta(days=4))
        not_going = self.create_registration(participation_status=ParticipationStatus.NOT_GOING)
        self.create_payment(registration=not_going, due_date=due)

        assert list(payments_due_for_reminder(3)) == [due_payment]
