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
"""Contract issuance and contract template administration."""

from __future__ import annotations

import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from campmanager.models.accounting import PaymentTemplate
from campmanager.models.base import next_sequential_number
from campmanager.models.contract import Contract, ContractTemplate
from campmanager.models.member import Participant
from campmanager.models.registration import Registration, RegistrationStatus
from campmanager.models.trip import Trip
from campmanager.utils.contract import (
    DEFAULT_CONTRACT_TEMPLATE,
    build_contract_context,
    build_payment_schedule,
    render_contract,
    unknown_tokens,
)
from campmanager.utils.core.actions import Actor, action_result, require_admin, require_guardian_of
from campmanager.utils.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

NUMBER_RETRY_LIMIT = 5


def _get_trip(trip_id: int) -> Trip:
    trip = Trip.objects.filter(pk=trip_id).first()
    if not trip:
        raise NotFoundError("Trip", trip_id)
    return trip


def _trip_schedule(trip_id: int) -> str:
    return build_payment_schedule(PaymentTemplate.objects.filter(trip_id=trip_id))


def issue_contract_if_needed(
    trip_id: int,
    participant_id: int,
    registration_id: int | None = None,
    issued_by_id: int | None = None,
) -> Contract | None:
    """Issue the participant's contract for a trip, once.

    Nothing happens without an active template or when the participant already holds a
    contract for the trip. Failures are logged and swallowed so the caller's transition
    is never affected.

    Returns:
        The new contract, or None when nothing was issued

    """
    try:
        template = ContractTemplate.objects.filter(trip_id=trip_id).first()
        if not template or not template.is_active:
            return None

        if Contract.objects.filter(trip_id=trip_id, participant_id=participant_id).exists():
            return None

        trip = Trip.objects.get(pk=trip_id)
        participant = Participant.objects.select_related("guardian").get(pk=participant_id)
        schedule = _trip_schedule(trip_id)

        for _try in range(NUMBER_RETRY_LIMIT):
            try:
                return _create_contract(trip, participant, registration_id, issued_by_id, template, schedule)
            except IntegrityError:
                if Contract.objects.filter(trip_id=trip_id, participant_id=participant_id).exists():
                    return None

        logger.error("Contract number collision after retries for trip %s participant %s", trip_id, participant_id)
    except (DatabaseError, ObjectDoesNotExist):
        logger.exception("Contract issuance failed for trip %s participant %s", trip_id, participant_id)
    return None


def _create_contract(
    trip: Trip,
    participant: Participant,
    registration_id: int | None,
    issued_by_id: int | None,
    template: ContractTemplate,
    schedule: str,
) -> Contract:
    today = timezone.localdate()
    with transaction.atomic():
        number = next_sequential_number(Contract.all_objects.filter(year=today.year))
        contract_number = f"{number}/{today.year}"
        context = build_contract_context(trip, participant, schedule, contract_number, today)

        contract = Contract.objects.create(
            trip=trip,
            participant=participant,
            registration_id=registration_id,
            contract_text=render_contract(template.template_text, context),
            year=today.year,
            number=number,
            created_by_id=issued_by_id,
        )

    logger.info("Issued contract %s for participant %s on trip %s", contract.contract_number, participant.id, trip.id)
    return contract


@action_result
def preview_contract_template(actor: Actor, trip_id: int, template_text: str | None = None) -> dict:
    """Render a draft template without saving anything.

    Uses the first active registration of the trip, or placeholders when there is none.
    Without a draft the trip's saved template is shown, or the default one.

    Returns:
        Dict with the rendered ``text`` and the ``participant_name`` used, if any

    """
    require_admin(actor)
    trip = _get_trip(trip_id)
    if not template_text or not template_text.strip():
        template_text = _template_text(trip.id)

    registration = (
        Registration.objects.filter(trip=trip, status=RegistrationStatus.ACTIVE)
        .select_related("participant__guardian")
        .order_by("created")
        .first()
    )
    participant = registration.participant if registration else None

    context = build_contract_context(trip, participant, _trip_schedule(trip.id))
    return {
        "text": render_contract(template_text, context),
        "participant_name": participant.full_name() if participant else None,
    }


def _template_text(trip_id: int) -> str:
    template = ContractTemplate.objects.filter(trip_id=trip_id).first()
    if template:
        return template.template_text
    return DEFAULT_CONTRACT_TEMPLATE


@action_result
def get_contract_template_text(actor: Actor, trip_id: int) -> str:
    """Return the text an administrator starts editing from: the saved template or the default."""
    require_admin(actor)
    return _template_text(_get_trip(trip_id).id)


@action_result
def save_contract_template(actor: Actor, trip_id: int, template_text: str) -> int:
    """Create or replace the contract template of a trip.

    Returns:
        Id of the template

    """
    require_admin(actor)
    trip = _get_trip(trip_id)

    if not template_text or not template_text.strip():
        raise ValidationError({"template_text": _("Template text cannot be empty")})

    unknown = unknown_tokens(template_text)
    if unknown:
        logger.warning("Contract template of trip %s uses unknown tokens: %s", trip.id, sorted(unknown))

    # one template per trip, soft-deleted rows included
    template = ContractTemplate.all_objects.filter(trip=trip).first()
    if not template:
        template = ContractTemplate(trip=trip, created_by_id=actor.member_id)
    template.deleted = None
    template.template_text = template_text
    template.save()
    return template.id


def _set_template_active(actor: Actor, trip_id: int, *, active: bool) -> None:
    require_admin(actor)

    template = ContractTemplate.objects.filter(trip_id=trip_id).first()
    if not template:
        raise NotFoundError("ContractTemplate", trip_id)

    template.is_active = active
    if active:
        template.activated_at = timezone.now()
        template.activated_by_id = actor.member_id
    template.save()


@action_result
def activate_contract_template(actor: Actor, trip_id: int) -> None:
    _set_template_active(actor, trip_id, active=True)


@action_result
def deactivate_contract_template(actor: Actor, trip_id: int) -> None:
    """Stop issuing contracts for the trip; contracts already issued stay as they are."""
    _set_template_active(actor, trip_id, active=False)


@action_result
def accept_contract(actor: Actor, contract_id: int) -> None:
    with transaction.atomic():
        contract = Contract.objects.select_for_update().select_related("participant").filter(pk=contract_id).first()
        if not contract:
            raise NotFoundError("Contract", contract_id)

        require_guardian_of(actor, contract.participant)

        if contract.is_accepted:
            raise ValidationError(_("Contract already accepted"))

        contract.accepted_at = timezone.now()
        contract.accepted_by_id = actor.member_id
        contract.save()


@action_result
def delete_contracts(actor: Actor, contract_ids: list[int]) -> int:
    """Delete the given contracts.

    Returns:
        Number of contracts deleted

    """
    require_admin(actor)
    if not contract_ids:
        return 0

    deleted = 0
    with transaction.atomic():
        for contract in Contract.objects.filter(pk__in=contract_ids):
            contract.delete()
            deleted += 1
    logger.info("Member %s deleted %s contracts", actor.member_id, deleted)
    return deleted


@action_result
def get_trip_contracts(actor: Actor, trip_id: int) -> list[Contract]:
    require_admin(actor)
    return list(Contract.objects.filter(trip_id=trip_id).select_related("participant").order_by("year", "number"))


@action_result
def get_guardian_contracts(actor: Actor) -> list[Contract]:
    return list(
        Contract.objects.filter(participant__guardian_id=actor.member_id)
        .select_related("trip", "participant")
        .order_by("-created")
    )
