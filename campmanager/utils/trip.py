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
"""Trip administration: status, explicit cascade delete and one-year-forward duplication."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from campmanager.models.accounting import Payment, PaymentTemplate, PaymentTransaction
from campmanager.models.contract import Contract, ContractTemplate
from campmanager.models.registration import Registration
from campmanager.models.trip import Trip, TripStatus
from campmanager.utils.core.actions import Actor, action_result, require_admin
from campmanager.utils.core.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (copy)"

TRIP_DATETIME_FIELDS = (
    "departure_datetime",
    "departure_stop2_datetime",
    "return_datetime",
    "return_stop2_datetime",
)


def shift_year(value: date | datetime | None, years: int = 1) -> date | datetime | None:
    """Move a date or datetime by whole years; 29 February lands on 28 February."""
    if value is None:
        return None
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def _get_trip(trip_id: int) -> Trip:
    trip = Trip.objects.filter(pk=trip_id).first()
    if not trip:
        raise NotFoundError("Trip", trip_id)
    return trip


@action_result
def update_trip_status(actor: Actor, trip_id: int, status: str) -> None:
    require_admin(actor)
    if status not in TripStatus.values:
        raise ValidationError({"status": _("Unknown trip status")})

    trip = _get_trip(trip_id)
    trip.status = status
    trip.save()


@action_result
def delete_trip(actor: Actor, trip_id: int) -> None:
    """Delete a trip and everything hanging from it, children first."""
    require_admin(actor)

    with transaction.atomic():
        trip = _get_trip(trip_id)

        for queryset in (
            PaymentTransaction.objects.filter(payment__registration__trip=trip),
            Payment.objects.filter(registration__trip=trip),
            Contract.objects.filter(trip=trip),
            Registration.objects.filter(trip=trip),
            PaymentTemplate.objects.filter(trip=trip),
            ContractTemplate.objects.filter(trip=trip),
        ):
            queryset.delete()

        trip.groups.clear()
        trip.delete()

    logger.info("Trip %s deleted by member %s", trip_id, actor.member_id)


@action_result
def duplicate_trip(actor: Actor, trip_id: int) -> int:
    """Copy a trip one year forward as a draft, with its groups and payment templates.

    Returns:
        Id of the new trip

    """
    require_admin(actor)

    with transaction.atomic():
        trip = _get_trip(trip_id)

        attrs = {field: shift_year(getattr(trip, field)) for field in TRIP_DATETIME_FIELDS}
        attrs["declaration_deadline"] = shift_year(trip.declaration_deadline)
        attrs["status"] = TripStatus.DRAFT
        attrs["title"] = f"{trip.title}{COPY_SUFFIX}"
        attrs["created"] = timezone.now()
        new_trip = trip.make_clone(attrs=attrs)

        for template in PaymentTemplate.objects.filter(trip=trip):
            template.make_clone(
                attrs={
                    "trip": new_trip,
                    "due_date": shift_year(template.due_date),
                    "birth_year_from": template.birth_year_from + 1 if template.birth_year_from else None,
                    "birth_year_to": template.birth_year_to + 1 if template.birth_year_to else None,
                    "created": timezone.now(),
                }
            )

    logger.info("Trip %s duplicated as %s", trip_id, new_trip.id)
    return new_trip.id


def split_trips_by_date(trips: Iterable[Trip], now: datetime | None = None) -> tuple[list[Trip], list[Trip]]:
    """Partition trips into (active, completed) by comparing their return with now.

    ``now`` defaults to the current time at each call.
    """
    if now is None:
        now = timezone.now()

    active, completed = [], []
    for trip in trips:
        if trip.return_datetime and trip.return_datetime < now:
            completed.append(trip)
        else:
            active.append(trip)
    return active, completed
