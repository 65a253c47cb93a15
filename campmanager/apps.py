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
from django.apps import AppConfig


class CampManagerConfig(AppConfig):
    name = "campmanager"
    default_auto_field = "django.db.models.AutoField"

    # Import signals
    def ready(self):
        _ = __import__("campmanager.models.signals")
