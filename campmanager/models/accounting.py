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

from decimal import Decimal
from typing import ClassVar

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q, UniqueConstraint
from django.utils.translation import gettext_lazy as _

from campmanager.models.base import BaseModel
from campmanager.models.member import Member
from campmanager.models.registration import Registration
from campmanager.models.trip import Trip


class PaymentType(models.TextChoices):
    INSTALLMENT = "installment", _("Installment")
    SEASON_PASS = "season_pass", _("Season pass")
    FULL = "full", _("Full payment")


class Currency(models.TextChoices):
    PLN = "PLN", "PLN"
    EUR = "EUR", "EUR"


class PaymentMethod(models.TextChoices):
    CASH = "cash", _("Cash")
    TRANSFER = "transfer", _("Bank transfer")
    BOTH = "both", _("Cash or bank transfer")


class TransactionMethod(models.TextChoices):
    CASH = "cash", _("Cash")
    TRANSFER = "transfer", _("Bank transfer")


class PaymentStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    PARTIALLY_PAID = "partially_paid", _("Partially paid")
    OVERDUE = "overdue", _("Overdue")
    PARTIALLY_PAID_OVERDUE = "partially_paid_overdue", _("Partially paid, overdue")
    PAID = "paid", _("Paid")
    CANCELLED = "cancelled", _("Cancelled")


# obligations still expecting money
OPEN_PAYMENT_STATUSES = (
    PaymentStatus.PENDING,
    PaymentStatus.PARTIALLY_PAID,
    PaymentStatus.OVERDUE,
    PaymentStatus.PARTIALLY_PAID_OVERDUE,
)


class PaymentTemplate(BaseModel):
    """Planned charge of a trip, instantiated into a Payment for every eligible participant."""

    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name="payment_templates")

    payment_type = models.CharField(max_length=15, choices=PaymentType.choices)

    installment_number = models.PositiveIntegerField(blank=True, null=True)

    is_first_installment = models.BooleanField(default=False)

    includes_season_pass = models.BooleanField(default=False)

    category_name = models.CharField(max_length=100, blank=True, null=True)

    birth_year_from = models.PositiveIntegerField(
        blank=True, null=True, help_text=_("First birth year eligible for the season pass (inclusive)")
    )

    birth_year_to = models.PositiveIntegerField(
        blank=True, null=True, help_text=_("Last birth year eligible for the season pass (inclusive)")
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal(0))])

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.PLN)

    due_date = models.DateField(blank=True, null=True, help_text=_("Leave empty for a due date by agreement"))

    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices, blank=True, null=True)

    class Meta:
        ordering: ClassVar[list] = [models.F("due_date").asc(nulls_last=True), "installment_number"]

    def __str__(self) -> str:
        return f"{self.trip} - {self.label()} {self.amount} {self.currency}"

    def clean(self) -> None:
        if self.payment_type == PaymentType.INSTALLMENT and not self.installment_number:
            raise ValidationError({"installment_number": _("Installments need a number")})
        if self.birth_year_from and self.birth_year_to and self.birth_year_from > self.birth_year_to:
            raise ValidationError({"birth_year_to": _("Birth year range is reversed")})

    def label(self) -> str:
        if self.payment_type == PaymentType.INSTALLMENT:
            return _("Installment %(number)s") % {"number": self.installment_number}
        if self.payment_type == PaymentType.SEASON_PASS:
            if self.category_name:
                return _("Season pass (%(category)s)") % {"category": self.category_name}
            return str(_("Season pass"))
        return str(_("Full payment"))

    def is_eligible(self, birth_year: int | None) -> bool:
        """Check whether a participant born in ``birth_year`` gets this charge.

        Only season passes are filtered; a missing bound is open on that side, and an unknown
        birth year is not filtered out.
        """
        if self.payment_type != PaymentType.SEASON_PASS:
            return True
        if birth_year is None:
            return True
        if self.birth_year_from is not None and birth_year < self.birth_year_from:
            return False
        if self.birth_year_to is not None and birth_year > self.birth_year_to:
            return False
        return True


class Payment(BaseModel):
    """Billing obligation of one registration, derived from a PaymentTemplate."""

    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="payments")

    template = models.ForeignKey(
        PaymentTemplate, on_delete=models.SET_NULL, null=True, blank=True, related_name="payments"
    )

    payment_type = models.CharField(max_length=15, choices=PaymentType.choices)

    installment_number = models.PositiveIntegerField(blank=True, null=True)

    original_amount = models.DecimalField(max_digits=10, decimal_places=2)

    amount = models.DecimalField(max_digits=10, decimal_places=2)

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.PLN)

    due_date = models.DateField(blank=True, null=True)

    status = models.CharField(
        max_length=25, choices=PaymentStatus.choices, default=PaymentStatus.PENDING, db_index=True
    )

    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal(0))

    discount_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal(0),
        validators=[MinValueValidator(Decimal(0)), MaxValueValidator(Decimal(100))],
    )

    discount_applied_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="discounts_applied"
    )

    discount_applied_at = models.DateTimeField(blank=True, null=True)

    paid_at = models.DateTimeField(blank=True, null=True)

    payment_method_used = models.CharField(max_length=10, choices=TransactionMethod.choices, blank=True, null=True)

    marked_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="payments_marked"
    )

    admin_notes = models.TextField(blank=True, null=True)

    class Meta:
        ordering: ClassVar[list] = [models.F("due_date").asc(nulls_last=True), "installment_number"]
        constraints: ClassVar[list] = [
            UniqueConstraint(
                fields=["registration", "template"],
                condition=Q(deleted=None) & Q(template__isnull=False) & ~Q(status="cancelled"),
                name="unique_live_payment_per_template",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.registration.participant} - {self.label()} ({self.status})"

    def label(self) -> str:
        if self.payment_type == PaymentType.INSTALLMENT:
            return _("Installment %(number)s") % {"number": self.installment_number}
        if self.payment_type == PaymentType.SEASON_PASS:
            return str(_("Season pass"))
        return str(_("Full payment"))

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.amount_paid


class PaymentTransaction(BaseModel):
    """Single receipt recorded against a payment. Rows are only ever appended."""

    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name="transactions")

    amount = models.DecimalField(max_digits=10, decimal_places=2)

    currency = models.CharField(max_length=3, choices=Currency.choices, default=Currency.PLN)

    transaction_date = models.DateField()

    payment_method = models.CharField(max_length=10, choices=TransactionMethod.choices)

    recorded_by = models.ForeignKey(
        Member, on_delete=models.SET_NULL, null=True, blank=True, related_name="transactions_recorded"
    )

    notes = models.TextField(blank=True, null=True)

    class Meta:
        ordering: ClassVar[list] = ["-transaction_date", "-created"]

    def __str__(self) -> str:
        return f"{self.payment_id}: {self.amount} {self.currency} ({self.transaction_date})"
