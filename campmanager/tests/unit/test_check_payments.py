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
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.utils import timezone

from campmanager.models.accounting import PaymentStatus
from campmanager.models.registration import ParticipationStatus
from campmanager.tests.unit.base import BaseTestCase
from campmanager.utils.core.exceptions import NotificationError


class TestCheckPaymentsCommand(BaseTestCase):
    """Test the daily overdue refresh and reminder command"""

    def run_command(self, *args):
        out = StringIO()
        call_command("check_payments", *args, stdout=out)
        return out.getvalue()

    def test_marks_overdue(self):
        today = timezone.localdate()
        pending = self.create_payment(due_date=today - timedelta(days=1))
        partial = self.create_payment(
            due_date=today - timedelta(days=1), status=PaymentStatus.PARTIALLY_PAID, amount_paid="100.00"
        )
        future = self.create_payment(due_date=today + timedelta(days=10))

        output = self.run_command()

        for payment in (pending, partial, future):
            payment.refresh_from_db()
        assert pending.status == PaymentStatus.OVERDUE
        assert partial.status == PaymentStatus.PARTIALLY_PAID_OVERDUE
        assert future.status == PaymentStatus.PENDING
        assert "Marked 2 payments as overdue." in output

    def test_sends_reminders(self, mailoutbox):
        due = timezone.localdate() + timedelta(days=3)
        reminded = self.create_payment(due_date=due)
        self.create_payment(due_date=due, status=PaymentStatus.CANCELLED)
        self.create_payment(due_date=due + timedelta(days=1))
        not_going = self.create_registration(participation_status=ParticipationStatus.NOT_GOING)
        self.create_payment(registration=not_going, due_date=due)

        output = self.run_command()

        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [reminded.registration.participant.guardian.email]
        assert mailoutbox[0].subject == "Payment reminder - Summer Camp"
        assert "Sent 1 payment reminders, skipped 0." in output

    def test_days_option(self, mailoutbox):
        self.create_payment(due_date=timezone.localdate() + timedelta(days=7))

        self.run_command("--days", "7")

        assert len(mailoutbox) == 1

    def test_failed_reminder_does_not_stop_batch(self, mailoutbox):
        due = timezone.localdate() + timedelta(days=3)
        self.create_payment(due_date=due)
        self.create_payment(due_date=due)

        with patch(
            "campmanager.management.commands.check_payments.send_payment_reminder_email",
            side_effect=[NotificationError("smtp down"), None],
        ):
            output = self.run_command()

        assert "Sent 1 payment reminders, skipped 0." in output
