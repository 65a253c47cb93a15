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
"""Participation state machine of a (trip, participant) pair.

Entering ``confirmed`` generates the payment obligations and the contract once; moving to
``not_going`` or back to ``unconfirmed`` cancels the obligations nobody has paid yet.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils.translation import gettext as _

from campmanager.accounting.contract import issue_contract_if_needed
from campmanager.accounting.ledger import cancel_pending_payments
from campmanager.accounting.payment import generate_payments
from campmanager.models.accounting import PaymentStatus
from campmanager.models.member import Participant
from campmanager.models.registration import (
    DepartureStop,
    ParticipationStatus,
    Registration,
    RegistrationStatus,
    RegistrationType,
    parse_participation_note,
)
from campmanager.models.trip import Trip
from campmanager.utils.core.actions import Actor, action_result, require_admin, require_guardian_of
from campmanager.utils.core.exceptions import AuthorizationError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)

# leaving confirmed through these statuses releases unpaid obligations
RELEASING_STATUSES = (ParticipationStatus.NOT_GOING, ParticipationStatus.UNCONFIRMED)


def resolve_note(
    actor: Actor, new_status: str, note: str | None, departure_stop: str | None
) -> tuple[str | None, str | None]:
    """Split the incoming note into (stop, comment).

    A legacy ``[STOP1]`` style prefix in the note is honoured when no explicit stop is
    given. An administrator confirming without any note picks the main departure point.
    """
    stop, comment = parse_participation_note(note)
    if departure_stop:
        if departure_stop not in DepartureStop.values:
            raise ValidationError({"departure_stop": _("Unknown departure stop")})
        stop = departure_stop

    if actor.is_admin and new_status == ParticipationStatus.CONFIRMED and not stop and not comment:
        stop = DepartureStop.STOP1

    return stop, comment


def _upsert_registration(
    actor: Actor, trip: Trip, participant: Participant, new_status: str, stop: str | None, comment: str | None
) -> Registration:
    registration = Registration.objects.select_for_update().filter(trip=trip, participant=participant).first()
    if registration:
        registration.participation_status = new_status
        registration.departure_stop = stop
        registration.participation_note = comment
        registration.save()
        return registration

    return Registration.objects.create(
        trip=trip,
        participant=participant,
        status=RegistrationStatus.ACTIVE,
        participation_status=new_status,
        departure_stop=stop,
        participation_note=comment,
        registered_by_id=actor.member_id,
        registration_type=RegistrationType.ADMIN if actor.is_admin else RegistrationType.PARENT,
    )


def ensure_payments(registration: Registration) -> None:
    """Generate the registration's payments unless live ones already exist.

    The registration row is locked for the check and the insert. Failures are logged and
    swallowed; the unique (registration, template) constraint turns a concurrent duplicate
    into an IntegrityError that is treated as already generated.
    """
    try:
        with transaction.atomic():
            locked = Registration.objects.select_for_update().get(pk=registration.pk)
            if locked.payments.exclude(status=PaymentStatus.CANCELLED).exists():
                return
            generate_payments(locked.id, locked.trip_id, locked.participant_id)
    except PersistenceError as err:
        if isinstance(err.__cause__, IntegrityError):
            logger.info("Payments of registration %s already generated", registration.id)
            return
        logger.exception("Payment generation failed for registration %s", registration.id)
    except (NotFoundError, DatabaseError):
        logger.exception("Payment generation failed for registration %s", registration.id)


@action_result
def set_participation_status(
    actor: Actor,
    trip_id: int,
    participant_id: int,
    new_status: str,
    note: str | None = None,
    departure_stop: str | None = None,
) -> None:
    """Move a participant of a trip into ``new_status`` and run the attached side effects.

    Args:
        actor: Administrator, or the guardian of the participant
        trip_id: Trip the participant is declared for
        participant_id: Participant whose status changes
        new_status: One of the participation statuses
        note: Free-text comment, possibly carrying a legacy stop prefix
        departure_stop: Explicit stop choice, overriding any prefix in the note

    """
    if new_status not in ParticipationStatus.values:
        raise ValidationError({"participation_status": _("Unknown participation status")})

    participant = Participant.objects.filter(pk=participant_id).first()
    if not actor.is_admin:
        # a guardian cannot tell a missing participant from somebody else's
        if not participant:
            raise AuthorizationError("Participant does not belong to this guardian")
        require_guardian_of(actor, participant)
    elif not participant:
        raise NotFoundError("Participant", participant_id)

    trip = Trip.objects.filter(pk=trip_id).first()
    if not trip:
        raise NotFoundError("Trip", trip_id)

    stop, comment = resolve_note(actor, new_status, note, departure_stop)

    with transaction.atomic():
        registration = _upsert_registration(actor, trip, participant, new_status, stop, comment)
        if new_status in RELEASING_STATUSES:
            cancel_pending_payments(registration)

    logger.info(
        "Participant %s on trip %s set to %s by member %s", participant.id, trip.id, new_status, actor.member_id
    )

    if new_status == ParticipationStatus.CONFIRMED:
        ensure_payments(registration)
        issue_contract_if_needed(trip.id, participant.id, registration.id, actor.member_id)


@action_result
def cancel_registration(actor: Actor, registration_id: int) -> None:
    """Cancel a registration together with all of its payments."""
    require_admin(actor)

    with transaction.atomic():
        registration = Registration.objects.select_for_update().filter(pk=registration_id).first()
        if not registration:
            raise NotFoundError("Registration", registration_id)

        registration.status = RegistrationStatus.CANCELLED
        registration.save()

        for payment in registration.payments.exclude(status=PaymentStatus.CANCELLED):
            payment.status = PaymentStatus.CANCELLED
            payment.save()
