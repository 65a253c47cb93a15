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
from django.db import OperationalError

from campmanager.accounting.ledger import record_transaction
from campmanager.accounting.registration import cancel_registration, set_participation_status
from campmanager.models.accounting import Payment, PaymentStatus, PaymentType
from campmanager.models.contract import Contract
from campmanager.models.registration import (
    DepartureStop,
    ParticipationStatus,
    Registration,
    RegistrationStatus,
    RegistrationType,
    format_participation_note,
    parse_participation_note,
)
from campmanager.tests.unit.base import BaseTestCase
from campmanager.utils.core.exceptions import PersistenceError


class TestParticipationNote(BaseTestCase):
    """Test the legacy stop prefix encoding"""

    @pytest.mark.parametrize(
        ("note", "expected"),
        [
            (None, (None, None)),
            ("", (None, None)),
            ("[STOP1]", ("stop1", None)),
            ("[STOP2] we join in Krakow", ("stop2", "we join in Krakow")),
            ("[OWN] dropping off by car", ("own", "dropping off by car")),
            ("no prefix here", (None, "no prefix here")),
            ("[STOP3] unknown", (None, "[STOP3] unknown")),
        ],
    )
    def test_parse(self, note, expected):
        assert parse_participation_note(note) == expected

    def test_format(self):
        assert format_participation_note(DepartureStop.STOP2, "we join in Krakow") == "[STOP2] we join in Krakow"
        assert format_participation_note(DepartureStop.OWN, None) == "[OWN]"
        assert format_participation_note(None, "maybe") == "maybe"
        assert format_participation_note(None, None) is None

    def test_legacy_note_property(self):
        registration = self.create_registration(departure_stop=DepartureStop.STOP1, participation_note="late")

        assert registration.legacy_note == "[STOP1] late"


class TestSetParticipationStatus(BaseTestCase):
    """Test the participation state machine"""

    def test_first_call_creates_registration(self):
        trip = self.create_trip()
        participant = self.create_participant()

        result = set_participation_status(self.actor(participant.guardian), trip.id, participant.id, "other", "ask me later")

        assert result.success
        registration = Registration.objects.get(trip=trip, participant=participant)
        assert registration.status == RegistrationStatus.ACTIVE
        assert registration.participation_status == ParticipationStatus.OTHER
        assert registration.participation_note == "ask me later"
        assert registration.registration_type == RegistrationType.PARENT

    def test_other_has_no_side_effects(self):
        trip = self.create_trip()
        self.create_installment(trip)
        self.create_contract_template(trip)
        participant = self.create_participant()

        set_participation_status(self.admin_actor(), trip.id, participant.id, ParticipationStatus.OTHER)

        assert not Payment.objects.exists()
        assert not Contract.objects.exists()

    def test_repeated_confirmation_is_idempotent(self):
        trip = self.create_trip()
        self.create_installment(trip)
        self.create_installment(trip, number=2, due_date=date(2025, 5, 1))
        self.create_contract_template(trip)
        participant = self.create_participant()
        actor = self.actor(participant.guardian)

        set_participation_status(actor, trip.id, participant.id, "confirmed", "[STOP1]")
        set_participation_status(actor, trip.id, participant.id, "confirmed", "[STOP2] from Krakow")

        registration = Registration.objects.get(trip=trip, participant=participant)
        assert registration.payments.count() == 2
        assert Contract.objects.filter(trip=trip, participant=participant).count() == 1
        assert registration.departure_stop == DepartureStop.STOP2
        assert registration.participation_note == "from Krakow"

    def test_admin_confirmation_defaults_to_main_stop(self):
        trip = self.create_trip()
        participant = self.create_participant()

        set_participation_status(self.admin_actor(), trip.id, participant.id, "confirmed")

        registration = Registration.objects.get(trip=trip, participant=participant)
        assert registration.departure_stop == DepartureStop.STOP1
        assert registration.legacy_note == "[STOP1]"
        assert registration.registration_type == RegistrationType.ADMIN

    def test_guardian_confirmation_keeps_note_as_given(self):
        trip = self.create_trip()
        participant = self.create_participant()

        set_participation_status(self.actor(participant.guardian), trip.id, participant.id, "confirmed")

        registration = Registration.objects.get(trip=trip, participant=participant)
        assert registration.departure_stop is None
        assert registration.participation_note is None

    def test_explicit_stop_wins_over_prefix(self):
        trip = self.create_trip()
        participant = self.create_participant()

        set_participation_status(
            self.actor(participant.guardian), trip.id, participant.id, "confirmed", "[STOP1] hi", departure_stop="own"
        )

        registration = Registration.objects.get(trip=trip, participant=participant)
        assert registration.departure_stop == DepartureStop.OWN
        assert registration.participation_note == "hi"

    def test_guardian_of_other_child_is_rejected(self):
        trip = self.create_trip()
        participant = self.create_participant()
        stranger = self.create_member()

        result = set_participation_status(self.actor(stranger), trip.id, participant.id, "confirmed")

        assert not result.success
        assert result.code == "forbidden"
        assert not Registration.objects.exists()

    def test_unknown_participant_looks_forbidden_to_guardian(self):
        trip = self.create_trip()

        guardian_result = set_participation_status(self.actor(self.create_member()), trip.id, 999999, "confirmed")
        admin_result = set_participation_status(self.admin_actor(), trip.id, 999999, "confirmed")

        assert guardian_result.code == "forbidden"
        assert admin_result.code == "not_found"

    def test_unknown_status(self):
        trip = self.create_trip()
        participant = self.create_participant()

        result = set_participation_status(self.admin_actor(), trip.id, participant.id, "maybe")

        assert result.code == "invalid"

    def test_unknown_trip(self):
        participant = self.create_participant()

        result = set_participation_status(self.admin_actor(), 999999, participant.id, "confirmed")

        assert result.code == "not_found"

    def test_not_going_cancels_only_pending(self):
        actor = self.admin_actor()
        registration = self.create_registration()
        paid = self.create_payment(registration=registration, status=PaymentStatus.PAID, amount_paid=Decimal(500))
        partial = self.create_payment(
            registration=registration, status=PaymentStatus.PARTIALLY_PAID, amount_paid=Decimal(100)
        )
        pending = self.create_payment(registration=registration)

        set_participation_status(actor, registration.trip_id, registration.participant_id, "not_going")

        paid.refresh_from_db()
        partial.refresh_from_db()
        pending.refresh_from_db()
        assert paid.status == PaymentStatus.PAID
        assert partial.status == PaymentStatus.PARTIALLY_PAID
        assert pending.status == PaymentStatus.CANCELLED

    def test_reconfirmation_after_cancellation_regenerates(self):
        trip = self.create_trip()
        self.create_installment(trip)
        participant = self.create_participant()
        actor = self.admin_actor()

        set_participation_status(actor, trip.id, participant.id, "confirmed")
        set_participation_status(actor, trip.id, participant.id, "unconfirmed")
        set_participation_status(actor, trip.id, participant.id, "confirmed")

        payments = Payment.objects.filter(registration__participant=participant)
        assert payments.filter(status=PaymentStatus.CANCELLED).count() == 1
        assert payments.filter(status=PaymentStatus.PENDING).count() == 1

    def test_payment_generation_failure_does_not_block_transition(self):
        trip = self.create_trip()
        self.create_installment(trip)
        participant = self.create_participant()

        with patch(
            "campmanager.accounting.registration.generate_payments", side_effect=PersistenceError("insert failed")
        ):
            result = set_participation_status(self.admin_actor(), trip.id, participant.id, "confirmed")

        assert result.success
        registration = Registration.objects.get(trip=trip, participant=participant)
        assert registration.participation_status == ParticipationStatus.CONFIRMED
        assert not registration.payments.exists()

    def test_database_error_in_generation_does_not_block_contract(self):
        trip = self.create_trip()
        self.create_installment(trip)
        self.create_contract_template(trip)
        participant = self.create_participant()

        with patch(
            "campmanager.accounting.payment.eligible_templates", side_effect=OperationalError("database is locked")
        ):
            result = set_participation_status(self.admin_actor(), trip.id, participant.id, "confirmed")

        assert result.success
        registration = Registration.objects.get(trip=trip, participant=participant)
        assert registration.participation_status == ParticipationStatus.CONFIRMED
        assert not registration.payments.exists()
        assert Contract.objects.filter(trip=trip, participant=participant).count() == 1

    def test_cancel_registration(self):
        registration = self.create_registration()
        paid = self.create_payment(registration=registration, status=PaymentStatus.PAID, amount_paid=Decimal(500))
        pending = self.create_payment(registration=registration)

        result = cancel_registration(self.admin_actor(), registration.id)

        registration.refresh_from_db()
        paid.refresh_from_db()
        pending.refresh_from_db()
        assert result.success
        assert registration.status == RegistrationStatus.CANCELLED
        assert paid.status == PaymentStatus.CANCELLED
        assert pending.status == PaymentStatus.CANCELLED


class TestLifecycleScenario(BaseTestCase):
    """Confirm, pay one installment, then withdraw"""

    def test_end_to_end(self):
        trip = self.create_trip()
        self.create_installment(trip, amount="500.00", due_date=date(2025, 3, 1))
        self.create_season_pass(trip, birth_year_from=2015, birth_year_to=2016, amount="300.00")
        participant = self.create_participant(birth_date=date(2015, 9, 10))
        actor = self.admin_actor()

        set_participation_status(actor, trip.id, participant.id, "confirmed")

        payments = Payment.objects.filter(registration__participant=participant)
        assert payments.count() == 2
        assert set(payments.values_list("status", flat=True)) == {PaymentStatus.PENDING}

        installment = payments.get(payment_type=PaymentType.INSTALLMENT)
        season_pass = payments.get(payment_type=PaymentType.SEASON_PASS)
        record_transaction(actor, installment.id, "500", "PLN", None, "transfer")

        installment.refresh_from_db()
        season_pass.refresh_from_db()
        assert installment.status == PaymentStatus.PAID
        assert season_pass.status == PaymentStatus.PENDING

        set_participation_status(actor, trip.id, participant.id, "not_going")

        installment.refresh_from_db()
        season_pass.refresh_from_db()
        assert installment.status == PaymentStatus.PAID
        assert season_pass.status == PaymentStatus.CANCELLED
