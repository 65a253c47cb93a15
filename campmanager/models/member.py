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

from django.contrib.auth.models import User
from django.db import models
from django.utils.translation import gettext_lazy as _

from campmanager.models.base import BaseModel


class MemberRole(models.TextChoices):
    PARENT = "parent", _("Parent")
    ADMIN = "admin", _("Administrator")


class Member(BaseModel):
    """Account profile: a guardian who registers children, or an administrator."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="member")

    email = models.CharField(max_length=200, editable=False)

    role = models.CharField(max_length=10, choices=MemberRole.choices, default=MemberRole.PARENT, db_index=True)

    name = models.CharField(max_length=100, blank=True, verbose_name=_("Name"))

    surname = models.CharField(max_length=100, blank=True, verbose_name=_("Surname"))

    phone = models.CharField(max_length=30, blank=True, null=True, verbose_name=_("Phone"))

    address_street = models.CharField(max_length=200, blank=True, null=True, verbose_name=_("Street"))

    address_zip = models.CharField(max_length=10, blank=True, null=True, verbose_name=_("Postal code"))

    address_city = models.CharField(max_length=100, blank=True, null=True, verbose_name=_("City"))

    pesel = models.CharField(
        max_length=11,
        blank=True,
        null=True,
        verbose_name=_("PESEL"),
        help_text=_("National identification number, printed on participation contracts"),
    )

    def __str__(self) -> str:
        return self.display_member()

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN

    def display_member(self) -> str:
        """Return the member's full name, falling back to the e-mail address."""
        full_name = f"{self.name} {self.surname}".strip()
        if full_name:
            return full_name
        return self.email

    def full_address(self) -> str | None:
        """Join street and "zip city" into a single postal address line."""
        city_line = " ".join(part for part in (self.address_zip, self.address_city) if part)
        parts = [part for part in (self.address_street, city_line) if part]
        if not parts:
            return None
        return ", ".join(parts)


class Group(BaseModel):
    """Named group of participants; trips list the groups they are open to."""

    name = models.CharField(max_length=100, verbose_name=_("Name"))

    description = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ["name"]


class Participant(BaseModel):
    guardian = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="participants")

    name = models.CharField(max_length=100, verbose_name=_("Name"))

    surname = models.CharField(max_length=100, verbose_name=_("Surname"))

    birth_date = models.DateField(blank=True, null=True, verbose_name=_("Birth date"))

    groups = models.ManyToManyField(Group, related_name="participants", blank=True)

    notes = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ["surname", "name"]

    def __str__(self) -> str:
        return self.full_name()

    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

    @property
    def birth_year(self) -> int | None:
        if not self.birth_date:
            return None
        return self.birth_date.year
