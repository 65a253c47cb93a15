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

from django.conf import settings as conf_settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from campmanager.models.base import BaseModel
from campmanager.models.member import Group


class TripStatus(models.TextChoices):
    DRAFT = "draft", _("Draft")
    PUBLISHED = "published", _("Published")
    CANCELLED = "cancelled", _("Cancelled")
    COMPLETED = "completed", _("Completed")


class Trip(BaseModel):
    title = models.CharField(max_length=200, verbose_name=_("Title"))

    description = models.TextField(blank=True, null=True)

    location = models.CharField(max_length=200, blank=True, null=True, verbose_name=_("Location"))

    status = models.CharField(max_length=10, choices=TripStatus.choices, default=TripStatus.DRAFT, db_index=True)

    declaration_deadline = models.DateField(
        blank=True,
        null=True,
        verbose_name=_("Declaration deadline"),
        help_text=_("Last day on which guardians can declare participation"),
    )

    departure_datetime = models.DateTimeField(verbose_name=_("Departure"))

    departure_location = models.CharField(max_length=200, blank=True, verbose_name=_("Departure location"))

    departure_stop2_datetime = models.DateTimeField(blank=True, null=True, verbose_name=_("Second stop departure"))

    departure_stop2_location = models.CharField(max_length=200, blank=True, null=True)

    return_datetime = models.DateTimeField(verbose_name=_("Return"))

    return_location = models.CharField(max_length=200, blank=True, verbose_name=_("Return location"))

    return_stop2_datetime = models.DateTimeField(blank=True, null=True, verbose_name=_("Second stop return"))

    return_stop2_location = models.CharField(max_length=200, blank=True, null=True)

    bank_account_pln = models.CharField(max_length=50, blank=True, null=True, verbose_name=_("Bank account (PLN)"))

    bank_account_eur = models.CharField(max_length=50, blank=True, null=True, verbose_name=_("Bank account (EUR)"))

    groups = models.ManyToManyField(Group, related_name="trips", blank=True)

    _clone_m2m_fields: ClassVar[list] = ["groups"]

    class Meta:
        ordering = ["departure_datetime"]

    def get_bank_account_pln(self) -> str:
        return self.bank_account_pln or conf_settings.CONTRACT_DEFAULT_BANK_ACCOUNT_PLN

    def get_bank_account_eur(self) -> str:
        return self.bank_account_eur or conf_settings.CONTRACT_DEFAULT_BANK_ACCOUNT_EUR
