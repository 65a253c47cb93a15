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
from django.urls import path

from campmanager.views import api

urlpatterns = [
    path(
        "api/trips/<int:trip_id>/participants/<int:participant_id>/status/",
        api.participation_status,
        name="api_participation_status",
    ),
    path("api/payments/<int:payment_id>/transactions/", api.payment_transaction, name="api_payment_transaction"),
    path("api/payments/<int:payment_id>/mark-paid/", api.payment_mark_paid, name="api_payment_mark_paid"),
    path("api/payments/<int:payment_id>/status/", api.payment_status, name="api_payment_status"),
    path("api/payments/<int:payment_id>/discount/", api.payment_discount, name="api_payment_discount"),
    path("api/payments/<int:payment_id>/amount/", api.payment_amount, name="api_payment_amount"),
    path("api/contracts/<int:contract_id>/accept/", api.contract_accept, name="api_contract_accept"),
]
