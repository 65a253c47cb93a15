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

from typing import ClassVar

from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils.translation import gettext_lazy as _

from campmanager.models.base import BaseModel
from campmanager.models.member import Member, Participant
from campmanager.models.registration import Registration
from campmanager.models.trip import Trip


class ContractTemplate(BaseModel):
    """Editable contract text of a trip, with ``{{token}}`` placeholders."""

    trip = models.OneToOneField(Trip, on_delete=models.CASCADE, related_name="contract_template")

    template_text = models.TextField(verbose_name=_("Template"))

    is_active = models.BooleanField(
        default=False,
        help_text=_("Contracts are issued on confirmation only while the template is active"),
    )

    created_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="contract_templates"
    )

    activated_at = models.DateTimeField(blank=True, null=True)

    activated_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="contract_templates_activated"
    )

    def __str__(self) -> str:
        return f"{self.trip} ({'active' if self.is_active else 'inactive'})"


class Contract(BaseModel):
    """Rendered contract of one participant for one trip, frozen at issuance."""

    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name="contracts")

    participant = models.ForeignKey(Participant, on_delete=models.CASCADE, related_name="contracts")

    registration = models.ForeignKey(
        Registration, on_delete=models.SET_NULL, null=True, blank=True, related_name="contracts"
    )

    contract_text = models.TextField()

    year = models.PositiveIntegerField()

    number = models.PositiveIntegerField()

    contract_number = models.CharField(max_length=20, editable=False, db_index=True)

    created_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="contracts_issued"
    )

    accepted_at = models.DateTimeField(blank=True, null=True)

    accepted_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="contracts_accepted"
    )

    class Meta:
        ordering: ClassVar[list] = ["-year", "-number"]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["number", "year", "deleted"],
                name="unique_contract_number_with_optional",
            ),
            UniqueConstraint(
                fields=["number", "year"],
                condition=Q(deleted=None),
                name="unique_contract_number_without_optional",
            ),
            UniqueConstraint(
                fields=["trip", "participant", "deleted"],
                name="unique_contract_participant_with_optional",
            ),
            UniqueConstraint(
                fields=["trip", "participant"],
                condition=Q(deleted=None),
                name="unique_contract_participant_without_optional",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.contract_number} - {self.participant}"

    def save(self, *args, **kwargs):
        self.contract_number = f"{self.number}/{self.year}"
        super().save(*args, **kwargs)

    @property
    def is_accepted(self) -> bool:
        return self.accepted_at is not None
