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

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from django.db.models import Sum

if TYPE_CHECKING:
    from django.db.models import QuerySet

TWO_PLACES = Decimal("0.01")


def decimal_to_str(decimal_value: Decimal) -> str:
    """Convert decimal to string with .00 removed.

    Example:
        >>> decimal_to_str(Decimal('10.00'))
        '10'
        >>> decimal_to_str(Decimal('10.50'))
        '10.50'

    """
    string_representation = str(decimal_value)
    return string_representation.replace(".00", "")


def round_amount(value: Decimal | float | str) -> Decimal:
    """Quantize a monetary value to two decimal places, rounding half up."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def get_sum(queryset: QuerySet, field: str = "amount") -> Decimal:
    """Sum the given field of a queryset, returning 0 if empty or None."""
    aggregation_result = queryset.aggregate(total=Sum(field))
    if not aggregation_result or not aggregation_result["total"]:
        return Decimal(0)
    return aggregation_result["total"]
