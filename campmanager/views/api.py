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
"""JSON endpoints wrapping the participation, ledger and contract actions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from django.contrib.auth.decorators import login_required
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_POST

from campmanager.accounting.contract import accept_contract
from campmanager.accounting.ledger import (
    apply_discount,
    mark_payment_paid,
    record_transaction,
    set_payment_status,
    update_payment_amount,
)
from campmanager.accounting.registration import set_participation_status
from campmanager.utils.core.actions import ActionResult, get_actor
from campmanager.utils.core.exceptions import AuthorizationError

if TYPE_CHECKING:
    from collections.abc import Callable

ERROR_STATUS = {
    "forbidden": 403,
    "not_found": 404,
    "invalid": 400,
    "persistence": 500,
}


def result_response(result: ActionResult) -> JsonResponse:
    """Convert an ActionResult into a JSON response."""
    if result.success:
        payload = {"ok": True}
        if isinstance(result.data, (int, str)):
            payload["result"] = result.data
        elif result.data is not None:
            payload["result"] = str(result.data)
        return JsonResponse(payload)
    return JsonResponse({"error": result.error, "code": result.code}, status=ERROR_STATUS.get(result.code, 400))


def _json_body(request: HttpRequest) -> dict[str, Any]:
    try:
        body = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        return {}
    return body if isinstance(body, dict) else {}


def _run_action(request: HttpRequest, action: Callable[..., ActionResult], *args: Any, **kwargs: Any) -> JsonResponse:
    try:
        actor = get_actor(request)
    except AuthorizationError as err:
        return JsonResponse({"error": str(err), "code": "forbidden"}, status=403)
    return result_response(action(actor, *args, **kwargs))


@login_required
@require_POST
def participation_status(request: HttpRequest, trip_id: int, participant_id: int) -> JsonResponse:
    data = _json_body(request)
    return _run_action(
        request,
        set_participation_status,
        trip_id,
        participant_id,
        data.get("status"),
        note=data.get("note"),
        departure_stop=data.get("departure_stop"),
    )


@login_required
@require_POST
def payment_transaction(request: HttpRequest, payment_id: int) -> JsonResponse:
    data = _json_body(request)
    return _run_action(
        request,
        record_transaction,
        payment_id,
        data.get("amount"),
        data.get("currency"),
        None,
        data.get("method"),
        note=data.get("note"),
    )


@login_required
@require_POST
def payment_mark_paid(request: HttpRequest, payment_id: int) -> JsonResponse:
    data = _json_body(request)
    return _run_action(request, mark_payment_paid, payment_id, data.get("method"))


@login_required
@require_POST
def payment_status(request: HttpRequest, payment_id: int) -> JsonResponse:
    data = _json_body(request)
    return _run_action(request, set_payment_status, payment_id, data.get("status"))


@login_required
@require_POST
def payment_discount(request: HttpRequest, payment_id: int) -> JsonResponse:
    data = _json_body(request)
    return _run_action(request, apply_discount, payment_id, data.get("percentage"))


@login_required
@require_POST
def payment_amount(request: HttpRequest, payment_id: int) -> JsonResponse:
    data = _json_body(request)
    return _run_action(request, update_payment_amount, payment_id, data.get("amount"))


@login_required
@require_POST
def contract_accept(request: HttpRequest, contract_id: int) -> JsonResponse:
    return _run_action(request, accept_contract, contract_id)
