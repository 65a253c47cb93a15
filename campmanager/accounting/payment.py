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
"""Derivation of payment obligations from a trip's payment templates."""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import DatabaseError

from campmanager.models.accounting import Payment, PaymentStatus, PaymentTemplate
from campmanager.models.member import Participant
from campmanager.utils.core.exceptions import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


def eligible_templates(trip_id: int, birth_year: int | None) -> list[PaymentTemplate]:
    """Return the templates of a trip that apply to a participant born in ``birth_year``."""
    templates = PaymentTemplate.objects.filter(trip_id=trip_id)
    return [template for template in templates if template.is_eligible(birth_year)]


def generate_payments(registration_id: int, trip_id: int, participant_id: int) -> list[Payment]:
    """Create one pending Payment per eligible template of the trip.

    Performs no existence check: callers must make sure the registration has no live
    payments yet (see ``ensure_payments``).

    Args:
        registration_id: Registration the obligations belong to
        trip_id: Trip whose template catalog is instantiated
        participant_id: Participant whose birth year drives season-pass eligibility

    Returns:
        The created payments, empty when the trip has no applicable template

    Raises:
        NotFoundError: If the participant does not exist
        PersistenceError: If the bulk insert is rejected

    """
    participant = Participant.objects.filter(pk=participant_id).first()
    if not participant:
        raise NotFoundError("Participant", participant_id)

    templates = eligible_templates(trip_id, participant.birth_year)
    if not templates:
        return []

    payments = [
        Payment(
            registration_id=registration_id,
            template=template,
            payment_type=template.payment_type,
            installment_number=template.installment_number,
            original_amount=template.amount,
            amount=template.amount,
            currency=template.currency,
            due_date=template.due_date,
            status=PaymentStatus.PENDING,
            amount_paid=Decimal(0),
            discount_percentage=Decimal(0),
        )
        for template in templates
    ]

    try:
        created = Payment.objects.bulk_create(payments)
    except DatabaseError as err:
        raise PersistenceError(f"Could not create payments for registration {registration_id}") from err

    logger.info("Created %s payments for registration %s", len(created), registration_id)
    return created
