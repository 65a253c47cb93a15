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
import logging
from typing import Any

from django.conf import settings as conf_settings
from django.core.management.base import BaseCommand

from campmanager.accounting.ledger import payments_due_for_reminder, refresh_overdue_statuses
from campmanager.mail.accounting import send_payment_reminder_email

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Django management command for the daily payment checks.

    Moves past-due obligations into their overdue status, then reminds guardians of
    confirmed participants about payments falling due in a few days.
    """

    help = "Refresh overdue payments and send payment reminders"

    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Days before the due date when the reminder is sent (default: PAYMENT_REMINDER_DAYS)",
        )

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: ARG002
        days = options.get("days")
        if days is None:
            days = getattr(conf_settings, "PAYMENT_REMINDER_DAYS", 3)

        overdue_count = refresh_overdue_statuses()
        self.stdout.write(f"Marked {overdue_count} payments as overdue.")

        self.send_reminders(days)

    def send_reminders(self, days: int) -> None:
        """Send one reminder per open payment due in ``days`` days; a failure skips only that payment."""
        sent = 0
        skipped = 0
        for payment in payments_due_for_reminder(days):
            guardian = payment.registration.participant.guardian
            if not guardian.email:
                skipped += 1
                continue

            try:
                send_payment_reminder_email(payment)
                sent += 1
            except Exception as reminder_error:  # noqa: BLE001
                logger.warning("Failed to send reminder for payment %s: %s", payment.id, reminder_error)

        logger.info("Payment reminders: sent=%s, skipped=%s", sent, skipped)
        self.stdout.write(self.style.SUCCESS(f"Sent {sent} payment reminders, skipped {skipped}."))
