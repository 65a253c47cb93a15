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
"""Rendering of contract templates: token substitution and the payment schedule block."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import TYPE_CHECKING

from django.utils import dateformat, timezone
from django.utils.translation import gettext as _

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from campmanager.models.accounting import PaymentTemplate
    from campmanager.models.member import Member, Participant
    from campmanager.models.trip import Trip

MISSING = "—"

TOKEN_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")

CONTRACT_TOKENS = (
    "trip_title",
    "trip_location",
    "trip_departure",
    "trip_return",
    "trip_bank_pln",
    "trip_bank_eur",
    "child_name",
    "child_birth_date",
    "parent_name",
    "parent_email",
    "parent_address",
    "parent_pesel",
    "parent_phone",
    "payment_schedule",
    "today_date",
    "contract_number",
)

PREVIEW_PLACEHOLDERS = {
    "child_name": "[PARTICIPANT NAME]",
    "child_birth_date": "[BIRTH DATE]",
    "parent_name": "[GUARDIAN NAME]",
    "parent_email": "[GUARDIAN E-MAIL]",
    "parent_address": "[GUARDIAN ADDRESS]",
    "parent_pesel": "[GUARDIAN PESEL]",
    "parent_phone": "[GUARDIAN PHONE]",
    "contract_number": "[CONTRACT NUMBER]",
}

SCHEDULE_LABEL_WIDTH = 28

SCHEDULE_AMOUNT_WIDTH = 6

# starting text offered to administrators for a trip without a template of its own
DEFAULT_CONTRACT_TEMPLATE = """CAMP PARTICIPATION CONTRACT No. {{contract_number}}
concluded on {{today_date}} between the Organizer and:

Guardian: {{parent_name}}
Address: {{parent_address}}
PESEL: {{parent_pesel}}
E-mail: {{parent_email}}
Phone: {{parent_phone}}
hereinafter the "Guardian".

§ 1 - Subject of the contract

1. The Organizer runs the trip {{trip_title}} in {{trip_location}}.
   Departure: {{trip_departure}}
   Return: {{trip_return}}
2. The Guardian enrols the participant {{child_name}}, born {{child_birth_date}}
   (hereinafter the "Participant").

§ 2 - Obligations

1. The Organizer provides accommodation, meals, supervision by qualified staff, medical
   care and accident insurance for the whole trip.
2. The Guardian declares that the Participant's health allows taking part in the trip,
   provides the Participant's equipment and medicines, and brings the Participant to the
   departure point and collects them on return.

§ 3 - Price and payment

{{payment_schedule}}

Payments are made by bank transfer or in cash:
  PLN: {{trip_bank_pln}}
  EUR: {{trip_bank_eur}}
The transfer title must contain the Participant's name and the trip title.
Missing any payment by its due date counts as withdrawal from the trip.

§ 4 - Final provisions

1. Any change to this contract requires written form.
2. The contract is governed by Polish law.
3. The contract is concluded electronically.

ACCEPTANCE

By accepting this contract electronically the Guardian confirms having read it in full
and agrees to the Participant's participation on the terms above.

Guardian: {{parent_name}}
Participant: {{child_name}}
Generated on: {{today_date}}
"""


def format_long_date(value: date | None) -> str:
    """Format a date as ``1 March 2025`` in the active language."""
    if not value:
        return ""
    return dateformat.format(value, "j E Y")


def format_long_datetime(value: datetime | None) -> str:
    """Format an instant as ``Saturday, 1 March 2025, 08:00`` in local time."""
    if not value:
        return ""
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return dateformat.format(value, "l, j E Y, H:i")


def format_stop(moment: datetime | None, location: str | None) -> str:
    when = format_long_datetime(moment)
    if when and location:
        return f"{when} — {location}"
    return when or location or MISSING


def build_payment_schedule(templates: Iterable[PaymentTemplate]) -> str:
    """Render one aligned line per payment template, earliest due date first.

    Templates without a due date are listed last as payable by agreement.
    """
    templates = sorted(templates, key=lambda template: (template.due_date is None, template.due_date or date.min))
    if not templates:
        return "  " + _("A detailed payment schedule will be provided by the organizer.")

    lines = []
    for template in templates:
        if template.due_date:
            due = _("due: %(date)s") % {"date": format_long_date(template.due_date)}
        else:
            due = _("due: by agreement")
        label = str(template.label()).ljust(SCHEDULE_LABEL_WIDTH)
        amount = f"{template.amount:.0f}".rjust(SCHEDULE_AMOUNT_WIDTH)
        lines.append(f"  {label} {amount} {template.currency}   {due}")
    return "\n".join(lines)


def trip_context(trip: Trip, schedule: str | None) -> dict[str, str]:
    return {
        "trip_title": trip.title,
        "trip_location": trip.location or MISSING,
        "trip_departure": format_stop(trip.departure_datetime, trip.departure_location),
        "trip_return": format_stop(trip.return_datetime, trip.return_location),
        "trip_bank_pln": trip.get_bank_account_pln() or MISSING,
        "trip_bank_eur": trip.get_bank_account_eur() or MISSING,
        "payment_schedule": schedule or "  " + _("No payment schedule."),
    }


def participant_context(participant: Participant, guardian: Member) -> dict[str, str]:
    return {
        "child_name": participant.full_name(),
        "child_birth_date": format_long_date(participant.birth_date) or MISSING,
        "parent_name": guardian.display_member(),
        "parent_email": guardian.email,
        "parent_address": guardian.full_address() or MISSING,
        "parent_pesel": guardian.pesel or MISSING,
        "parent_phone": guardian.phone or MISSING,
    }


def build_contract_context(
    trip: Trip,
    participant: Participant | None,
    schedule: str | None,
    contract_number: str | None = None,
    today: date | None = None,
) -> dict[str, str]:
    """Collect the values of every contract token.

    Without a participant the personal tokens render as bracketed placeholders.
    """
    context = trip_context(trip, schedule)
    if participant is None:
        context.update(PREVIEW_PLACEHOLDERS)
    else:
        context.update(participant_context(participant, participant.guardian))

    if contract_number:
        context["contract_number"] = contract_number
    context.setdefault("contract_number", MISSING)

    context["today_date"] = format_long_date(today or timezone.localdate())
    return context


def render_contract(template_text: str, context: Mapping[str, str]) -> str:
    """Substitute ``{{token}}`` occurrences; unknown tokens are left untouched."""

    def replace(match: re.Match) -> str:
        token = match.group(1)
        if token in context:
            return str(context[token])
        return match.group(0)

    return TOKEN_RE.sub(replace, template_text)


def unknown_tokens(template_text: str) -> set[str]:
    """Return the ``{{token}}`` names used in a template that rendering does not know."""
    return {token for token in TOKEN_RE.findall(template_text) if token not in CONTRACT_TOKENS}
