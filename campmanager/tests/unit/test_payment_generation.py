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

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from campmanager.accounting.payment import eligible_templates, generate_payments
from campmanager.models.accounting import Payment, PaymentStatus, PaymentType
from campmanager.tests.unit.base import BaseTestCase
from campmanager.utils.core.exceptions import NotFoundError, PersistenceError


class TestSeasonPassEligibility(BaseTestCase):
    """Test birth-year filtering of season pass templates"""

    @pytest.mark.parametrize(
        ("birth_year", "eligible"),
        [(2014, False), (2015, True), (2016, True), (2017, False)],
    )
    def test_birth_year_window_is_inclusive(self, birth_year, eligible):
        trip = self.create_trip()
        self.create_season_pass(trip, birth_year_from=2015, birth_year_to=2016)
        participant = self.create_participant(birth_date=date(birth_year, 1, 15))
        registration = self.create_registration(trip=trip, participant=participant)

        created = generate_payments(registration.id, trip.id, participant.id)

        assert len(created) == (1 if eligible else 0)

    def test_missing_bound_is_unbounded(self):
        trip = self.create_trip()
        open_start = self.create_season_pass(trip, birth_year_from=None, birth_year_to=2016)
        open_end = self.create_season_pass(trip, birth_year_from=2015, birth_year_to=None)

        assert set(eligible_templates(trip.id, 2001)) == {open_start}
        assert set(eligible_templates(trip.id, 2030)) == {open_end}

    def test_unknown_birth_year_keeps_season_pass(self):
        trip = self.create_trip()
        season_pass = self.create_season_pass(trip)

        assert eligible_templates(trip.id, None) == [season_pass]

    def test_other_types_are_never_filtered(self):
        trip = self.create_trip()
        installment = self.create_installment(trip)
        full = self.create_installment(trip, number=None, payment_type=PaymentType.FULL, amount="900.00")

        assert set(eligible_templates(trip.id, 1990)) == {installment, full}


class TestGeneratePayments(BaseTestCase):
    """Test instantiation of payment templates into payments"""

    def test_no_templates_is_a_noop(self):
        registration = self.create_registration()

        created = generate_payments(registration.id, registration.trip_id, registration.participant_id)

        assert created == []
        assert not Payment.objects.exists()

    def test_payment_copies_template(self):
        trip = self.create_trip()
        template = self.create_installment(trip, number=2, amount="450.00", currency="EUR", due_date=date(2025, 5, 1))
        registration = self.create_registration(trip=trip)

        generate_payments(registration.id, trip.id, registration.participant_id)

        payment = Payment.objects.get(registration=registration)
        assert payment.template == template
        assert payment.payment_type == PaymentType.INSTALLMENT
        assert payment.installment_number == 2
        assert payment.original_amount == Decimal("450.00")
        assert payment.amount == Decimal("450.00")
        assert payment.amount_paid == Decimal(0)
        assert payment.discount_percentage == Decimal(0)
        assert payment.currency == "EUR"
        assert payment.due_date == date(2025, 5, 1)
        assert payment.status == PaymentStatus.PENDING

    def test_generator_does_not_check_existing_payments(self):
        trip = self.create_trip()
        template = self.create_installment(trip)
        registration = self.create_registration(trip=trip)
        self.create_payment(registration=registration, template=None)

        generate_payments(registration.id, trip.id, registration.participant_id)

        assert registration.payments.filter(template=template).count() == 1
        assert registration.payments.count() == 2

    def test_unknown_participant(self):
        registration = self.create_registration()

        with pytest.raises(NotFoundError):
            generate_payments(registration.id, registration.trip_id, 999999)

    def test_insert_failure_is_reported(self):
        trip = self.create_trip()
        self.create_installment(trip)
        registration = self.create_registration(trip=trip)

        with patch.object(Payment.objects, "bulk_create", side_effect=DatabaseError("boom")):
            with pytest.raises(PersistenceError):
                generate_payments(registration.id, trip.id, registration.participant_id)
