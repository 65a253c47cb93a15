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
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction
from django.utils.translation import gettext_lazy as _

from campmanager.models.accounting import Payment, PaymentStatus
from campmanager.models.utils import decimal_to_str
from campmanager.utils.tasks import my_send_mail

if TYPE_CHECKING:
    from decimal import Decimal

logger = logging.getLogger(__name__)


def get_payment_confirmed_email(
    guardian_name: str,
    participant_name: str,
    trip_title: str,
    amount: Decimal,
    currency: str,
    payment_label: str,
) -> tuple[str, str]:
    """Build subject and body of the mail confirming a settled payment."""
    subject = _("Payment received - %(trip)s") % {"trip": trip_title}

    body = _("Hi %(name)s,") % {"name": guardian_name} + "<br /><br />"
    body += _("the payment for <b>%(participant)s</b> has been registered.") % {"participant": participant_name}
    body += f"<br /><br /><b>{trip_title}</b><br />{payment_label}<br />"
    body += _("%(amount)s %(currency)s - paid") % {"amount": decimal_to_str(amount), "currency": currency}
    return subject, body


def send_payment_confirmed_email(
    guardian_email: str,
    guardian_name: str,
    participant_name: str,
    trip_title: str,
    amount: Decimal,
    currency: str,
    payment_label: str,
) -> None:
    subject, body = get_payment_confirmed_email(
        guardian_name, participant_name, trip_title, amount, currency, payment_label
    )
    my_send_mail(subject, body, guardian_email)


def get_payment_reminder_email(payment: Payment) -> tuple[str, str]:
    """Build subject and body of the reminder sent before a payment falls due."""
    registration = payment.registration
    guardian = registration.participant.guardian

    subject = _("Payment reminder - %(trip)s") % {"trip": registration.trip.title}

    body = _("Hi %(name)s,") % {"name": guardian.name or guardian.display_member()} + "<br /><br />"
    body += _("the payment for <b>%(participant)s</b> is due soon.") % {
        "participant": registration.participant.full_name()
    }
    body += f"<br /><br /><b>{registration.trip.title}</b><br />{payment.label()}<br />"
    body += f"{decimal_to_str(payment.amount - payment.amount_paid)} {payment.currency}<br />"
    body += _("Due date: %(date)s") % {"date": payment.due_date.isoformat()}
    return subject, body


def send_payment_reminder_email(payment: Payment) -> None:
    guardian = payment.registration.participant.guardian
    subject, body = get_payment_reminder_email(payment)
    my_send_mail(subject, body, guardian)


def notify_payment_confirmed(payment: Payment) -> None:
    """Tell the guardian a payment has been settled.

    Delivery problems are logged and never reach the caller.
    """
    registration = payment.registration
    participant = registration.participant
    guardian = participant.guardian

    try:
        send_payment_confirmed_email(
            guardian.email,
            guardian.name or guardian.display_member(),
            participant.full_name(),
            registration.trip.title,
            payment.amount,
            payment.currency,
            payment.label(),
        )
    except Exception:  # noqa: BLE001
        logger.exception("Payment confirmation mail failed for payment %s", payment.id)


def track_payment_status(instance: Payment) -> None:
    """Remember the stored status of a payment about to be saved."""
    instance._previous_status = None
    if not instance.pk:
        return

    previous = Payment.objects.filter(pk=instance.pk).values_list("status", flat=True).first()
    instance._previous_status = previous


def handle_payment_paid(instance: Payment) -> None:
    """Send the confirmation mail when a payment has just become paid."""
    if instance.status != PaymentStatus.PAID:
        return

    if getattr(instance, "_previous_status", None) == PaymentStatus.PAID:
        return

    # only once the status change is committed
    transaction.on_commit(lambda: notify_payment_confirmed(instance))
