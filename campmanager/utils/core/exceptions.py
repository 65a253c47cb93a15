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


class AuthorizationError(Exception):
    """Raised when the acting member lacks the role or the ownership an action needs."""


class NotFoundError(Exception):
    """Raised when a referenced trip, payment, registration or contract does not exist.

    Attributes:
        model (str): Name of the missing entity
        pk: Identifier that was looked up

    """

    def __init__(self, model: str, pk: object = None) -> None:
        """Initialize with the entity name and the missing identifier."""
        super().__init__(f"{model} {pk} not found" if pk is not None else f"{model} not found")
        self.model = model
        self.pk = pk


class PersistenceError(Exception):
    """Raised when the database rejects a read or a write."""


class NotificationError(Exception):
    """Raised when a notification mail cannot be dispatched."""
