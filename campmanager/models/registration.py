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

import re
from typing import ClassVar

from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils.translation import gettext_lazy as _

from campmanager.models.base import BaseModel
from campmanager.models.member import Member, Participant
from campmanager.models.trip import Trip


class RegistrationStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    CANCELLED = "cancelled", _("Cancelled")


class ParticipationStatus(models.TextChoices):
    UNCONFIRMED = "unconfirmed", _("Unconfirmed")
    CONFIRMED = "confirmed", _("Confirmed")
    NOT_GOING = "not_going", _("Not going")
    OTHER = "other", _("Other")


class RegistrationType(models.TextChoices):
    PARENT = "parent", _("Parent")
    ADMIN = "admin", _("Administrator")


class DepartureStop(models.TextChoices):
    STOP1 = "stop1", _("Main departure point")
    STOP2 = "stop2", _("Second stop")
    OWN = "own", _("Own transport")


STOP_PREFIXES = {
    DepartureStop.STOP1: "[STOP1]",
    DepartureStop.STOP2: "[STOP2]",
    DepartureStop.OWN: "[OWN]",
}

STOP_PREFIX_RE = re.compile(r"^\[(STOP1|STOP2|OWN)\]\s*")


def parse_participation_note(note: str | None) -> tuple[str | None, str | None]:
    """Split a legacy note such as ``[STOP2] we join in Krakow`` into (stop, comment).

    Notes without a recognised prefix carry no stop choice and are returned whole as the comment.
    """
    if not note:
        return None, None

    match = STOP_PREFIX_RE.match(note)
    if not match:
        return None, note

    stop = match.group(1).lower()
    comment = note[match.end() :].strip()
    return stop, comment or None


def format_participation_note(stop: str | None, comment: str | None) -> str | None:
    """Rebuild the legacy prefixed note from a stop choice and a comment."""
    prefix = STOP_PREFIXES.get(stop) if stop else None
    if prefix and comment:
        return f"{prefix} {comment}"
    return prefix or comment or None


class Registration(BaseModel):
    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name="registrations")

    participant = models.ForeignKey(Participant, on_delete=models.CASCADE, related_name="registrations")

    registered_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="registrations_made"
    )

    registration_type = models.CharField(
        max_length=10, choices=RegistrationType.choices, default=RegistrationType.PARENT
    )

    status = models.CharField(
        max_length=10, choices=RegistrationStatus.choices, default=RegistrationStatus.ACTIVE, db_index=True
    )

    participation_status = models.CharField(
        max_length=15,
        choices=ParticipationStatus.choices,
        default=ParticipationStatus.UNCONFIRMED,
        db_index=True,
    )

    # stop choice lives here; participation_note only carries the free-text comment
    departure_stop = models.CharField(max_length=10, choices=DepartureStop.choices, blank=True, null=True)

    participation_note = models.TextField(blank=True, null=True)

    class Meta:
        ordering: ClassVar[list] = ["created"]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["trip", "participant", "deleted"],
                name="unique_trip_participant_with_optional",
            ),
            UniqueConstraint(
                fields=["trip", "participant"],
                condition=Q(deleted=None),
                name="unique_trip_participant_without_optional",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.participant} - {self.trip} ({self.participation_status})"

    @property
    def legacy_note(self) -> str | None:
        """Participation note in the prefixed form (``[STOP2] comment``)."""
        return format_participation_note(self.departure_stop, self.participation_note)
