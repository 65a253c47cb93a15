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
"""Payment ledger: transactions, status derivation, discounts and administrative corrections.

Every mutation locks the payment row with ``select_for_update()`` and keeps ``amount_paid``
equal to the sum of the payment's transactions.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from campmanager.models.accounting import (
    OPEN_PAYMENT_STATUSES,
    Currency,
    Payment,
    PaymentStatus,
    PaymentTransaction,
    TransactionMethod,
)
from campmanager.models.registration import ParticipationStatus, Registration
from campmanager.models.utils import round_amount
from campmanager.utils.core.actions import Actor, action_result, require_admin
from campmanager.utils.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

MARKED_PAID_NOTE = "Marked as paid by administrator"

STATUS_CORRECTION_NOTE = "Administrative correction: status set to %(status)s"

# statuses an administrator may force directly
OVERRIDE_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PAID, PaymentStatus.CANCELLED)

# largest value a DecimalField(max_digits=10, decimal_places=2) holds
MAX_AMOUNT = Decimal("99999999.99")


def _to_decimal(value: object, field: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as err:
        raise ValidationError({field: _("Not a valid number")}) from err
    if not number.is_finite():
        raise ValidationError({field: _("Not a valid number")})
    return number


def _to_amount(value: object, field: str) -> Decimal:
    """Parse a monetary value, rounded to cents and within the column range."""
    amount = _to_decimal(value, field)
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError({field: _("Amount is too large")})
    return round_amount(amount)


def _lock_payment(payment_id: int) -> Payment:
    payment = Payment.objects.select_for_update().filter(pk=payment_id).first()
    if not payment:
        raise NotFoundError("Payment", payment_id)
    return payment


def _validate_method(method: str) -> None:
    if method not in TransactionMethod.values:
        raise ValidationError({"payment_method": _("Unknown payment method")})


def derive_status(payment: Payment, today: date | None = None) -> str:
    """Compute the status implied by ``amount_paid`` versus ``amount``.

    Fully covered payments are paid; partial coverage becomes partially paid, or
    partially paid overdue once the due date has passed. With nothing paid the current
    status is kept.
    """
    if today is None:
        today = timezone.localdate()

    if payment.amount_paid >= payment.amount:
        return PaymentStatus.PAID

    if payment.amount_paid > 0:
        if payment.due_date and payment.due_date < today:
            return PaymentStatus.PARTIALLY_PAID_OVERDUE
        return PaymentStatus.PARTIALLY_PAID

    return payment.status


def _add_transaction(
    payment: Payment,
    amount: Decimal,
    currency: str,
    transaction_date: date,
    method: str,
    recorded_by_id: int | None,
    note: str | None,
) -> PaymentTransaction:
    payment_transaction = PaymentTransaction.objects.create(
        payment=payment,
        amount=amount,
        currency=currency,
        transaction_date=transaction_date,
        payment_method=method,
        recorded_by_id=recorded_by_id,
        notes=note,
    )
    payment.amount_paid += amount
    return payment_transaction


@action_result
def record_transaction(
    actor: Actor,
    payment_id: int,
    amount: Decimal | str,
    currency: str,
    transaction_date: date | None,
    method: str,
    note: str | None = None,
) -> int:
    """Record a receipt against a payment and roll it up into the payment status.

    The currency is accepted even when it differs from the payment's own currency.

    Returns:
        Id of the created transaction

    """
    require_admin(actor)

    amount = _to_amount(amount, "amount")
    if amount <= 0:
        raise ValidationError({"amount": _("Amount must be positive")})
    _validate_method(method)
    if currency not in Currency.values:
        raise ValidationError({"currency": _("Unknown currency")})

    with transaction.atomic():
        payment = _lock_payment(payment_id)

        if currency != payment.currency:
            logger.warning(
                "Transaction in %s recorded on payment %s held in %s", currency, payment.id, payment.currency
            )

        payment_transaction = _add_transaction(
            payment,
            amount,
            currency,
            transaction_date or timezone.localdate(),
            method,
            actor.member_id,
            note,
        )

        payment.status = derive_status(payment)
        if payment.status == PaymentStatus.PAID:
            payment.paid_at = timezone.now()
        payment.payment_method_used = method
        payment.save()

    logger.info("Recorded %s %s on payment %s, status %s", amount, currency, payment.id, payment.status)
    return payment_transaction.id


@action_result
def mark_payment_paid(actor: Actor, payment_id: int, method: str) -> None:
    """Settle a payment in full, recording the outstanding remainder as one transaction."""
    require_admin(actor)
    _validate_method(method)

    with transaction.atomic():
        payment = _lock_payment(payment_id)

        remaining = payment.amount - payment.amount_paid
        if remaining > 0:
            _add_transaction(
                payment,
                remaining,
                payment.currency,
                timezone.localdate(),
                method,
                actor.member_id,
                MARKED_PAID_NOTE,
            )

        payment.amount_paid = payment.amount
        payment.status = PaymentStatus.PAID
        payment.paid_at = timezone.now()
        payment.payment_method_used = method
        payment.marked_by_id = actor.member_id
        payment.save()


@action_result
def set_payment_status(actor: Actor, payment_id: int, status: str) -> None:
    """Force a payment into pending, paid or cancelled.

    Forcing ``paid`` books the missing remainder and forcing ``pending`` books a reversal
    of everything paid so far, each as a correction transaction.
    """
    require_admin(actor)
    if status not in OVERRIDE_STATUSES:
        raise ValidationError({"status": _("Status can only be set to pending, paid or cancelled")})

    with transaction.atomic():
        payment = _lock_payment(payment_id)

        correction = Decimal(0)
        if status == PaymentStatus.PAID:
            correction = payment.amount - payment.amount_paid
            payment.paid_at = timezone.now()
        elif status == PaymentStatus.PENDING:
            correction = -payment.amount_paid
            payment.paid_at = None

        if correction:
            _add_transaction(
                payment,
                correction,
                payment.currency,
                timezone.localdate(),
                payment.payment_method_used or TransactionMethod.TRANSFER,
                actor.member_id,
                STATUS_CORRECTION_NOTE % {"status": status},
            )

        payment.status = status
        payment.marked_by_id = actor.member_id
        payment.save()

    logger.info("Payment %s status forced to %s by member %s", payment_id, status, actor.member_id)


@action_result
def apply_discount(actor: Actor, payment_id: int, percentage: Decimal | str) -> Decimal:
    """Recompute the amount as ``original_amount * (1 - percentage / 100)``.

    ``amount_paid`` and ``status`` are left as they are.

    Returns:
        The discounted amount

    """
    require_admin(actor)

    percentage = _to_decimal(percentage, "discount_percentage")
    if percentage < 0 or percentage > 100:
        raise ValidationError({"discount_percentage": _("Discount must be between 0 and 100")})

    with transaction.atomic():
        payment = _lock_payment(payment_id)
        payment.discount_percentage = percentage
        payment.amount = round_amount(payment.original_amount * (1 - percentage / 100))
        payment.discount_applied_by_id = actor.member_id
        payment.discount_applied_at = timezone.now()
        payment.save()

    if payment.amount_paid > payment.amount:
        logger.warning("Payment %s overpaid after discount: %s > %s", payment.id, payment.amount_paid, payment.amount)

    return payment.amount


@action_result
def update_payment_amount(actor: Actor, payment_id: int, new_amount: Decimal | str) -> None:
    """Overwrite the current amount, bypassing the original amount and discount."""
    require_admin(actor)

    new_amount = _to_amount(new_amount, "amount")
    if new_amount < 0:
        raise ValidationError({"amount": _("Amount cannot be negative")})

    with transaction.atomic():
        payment = _lock_payment(payment_id)
        payment.amount = new_amount
        payment.save()


@action_result
def update_payment_note(actor: Actor, payment_id: int, note: str | None) -> None:
    require_admin(actor)

    with transaction.atomic():
        payment = _lock_payment(payment_id)
        payment.admin_notes = note or None
        payment.save()


def get_payment_transactions(payment_id: int) -> list[PaymentTransaction]:
    return list(PaymentTransaction.objects.filter(payment_id=payment_id).order_by("-transaction_date", "-created"))


def cancel_pending_payments(registration: Registration) -> int:
    """Cancel the still untouched payments of a registration.

    Partially paid, paid and overdue obligations are kept.

    Returns:
        Number of cancelled payments

    """
    cancelled = 0
    for payment in registration.payments.select_for_update().filter(status=PaymentStatus.PENDING):
        payment.status = PaymentStatus.CANCELLED
        payment.save()
        cancelled += 1

    if cancelled:
        logger.info("Cancelled %s pending payments of registration %s", cancelled, registration.id)
    return cancelled


def refresh_overdue_statuses(today: date | None = None) -> int:
    """Move open payments whose due date has passed into their overdue counterpart.

    Returns:
        Number of payments updated

    """
    if today is None:
        today = timezone.localdate()

    past_due = Payment.objects.filter(due_date__lt=today)
    updated = past_due.filter(status=PaymentStatus.PENDING).update(status=PaymentStatus.OVERDUE)
    updated += past_due.filter(status=PaymentStatus.PARTIALLY_PAID).update(
        status=PaymentStatus.PARTIALLY_PAID_OVERDUE
    )
    return updated


def payments_due_for_reminder(days: int = 3, today: date | None = None):
    """Open obligations of confirmed registrations falling due exactly ``days`` from today."""
    if today is None:
        today = timezone.localdate()

    return (
        Payment.objects.filter(
            due_date=today + timedelta(days=days),
            status__in=OPEN_PAYMENT_STATUSES,
            registration__participation_status=ParticipationStatus.CONFIRMED,
        )
        .select_related("registration__participant__guardian", "registration__trip")
        .order_by("id")
    )
