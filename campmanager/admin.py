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

from django.contrib import admin

from campmanager.models.accounting import Payment, PaymentTemplate, PaymentTransaction
from campmanager.models.contract import Contract, ContractTemplate
from campmanager.models.member import Group, Member, Participant
from campmanager.models.registration import Registration
from campmanager.models.trip import Trip


class DefModelAdmin(admin.ModelAdmin):
    """Base admin class for CampManager models."""

    ordering: ClassVar[list] = ["-updated"]


@admin.register(Member)
class MemberAdmin(DefModelAdmin):
    list_display = ("id", "name", "surname", "email", "role")
    list_filter = ("role",)
    search_fields = ("name", "surname", "email")


@admin.register(Group)
class GroupAdmin(DefModelAdmin):
    list_display = ("id", "name")
    search_fields = ("name",)


@admin.register(Participant)
class ParticipantAdmin(DefModelAdmin):
    list_display = ("id", "name", "surname", "birth_date", "guardian")
    search_fields = ("name", "surname")
    autocomplete_fields: ClassVar[list] = ["guardian"]


class PaymentTemplateInline(admin.TabularInline):
    model = PaymentTemplate
    extra = 0


@admin.register(Trip)
class TripAdmin(DefModelAdmin):
    list_display = ("id", "title", "status", "departure_datetime", "return_datetime")
    list_filter = ("status",)
    search_fields = ("title",)
    inlines: ClassVar[list] = [PaymentTemplateInline]


@admin.register(Registration)
class RegistrationAdmin(DefModelAdmin):
    list_display = ("id", "trip", "participant", "status", "participation_status", "departure_stop")
    list_filter = ("status", "participation_status")
    autocomplete_fields: ClassVar[list] = ["trip", "participant"]


class PaymentTransactionInline(admin.TabularInline):
    model = PaymentTransaction
    extra = 0
    readonly_fields = ("amount", "currency", "transaction_date", "payment_method", "recorded_by", "notes")

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Payment)
class PaymentAdmin(DefModelAdmin):
    list_display = ("id", "registration", "payment_type", "amount", "amount_paid", "currency", "due_date", "status")
    list_filter = ("status", "payment_type", "currency")
    readonly_fields = ("original_amount", "amount_paid")
    inlines: ClassVar[list] = [PaymentTransactionInline]


@admin.register(ContractTemplate)
class ContractTemplateAdmin(DefModelAdmin):
    list_display = ("id", "trip", "is_active", "activated_at")


@admin.register(Contract)
class ContractAdmin(DefModelAdmin):
    list_display = ("id", "contract_number", "trip", "participant", "accepted_at")
    search_fields = ("contract_number",)
    readonly_fields = ("contract_text", "contract_number", "year", "number")
