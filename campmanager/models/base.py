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

from typing import TYPE_CHECKING, ClassVar

from django.db import models
from django.utils import timezone
from model_clone import CloneMixin
from safedelete.models import SOFT_DELETE_CASCADE, SafeDeleteModel

if TYPE_CHECKING:
    from django.db.models import QuerySet


class BaseModel(CloneMixin, SafeDeleteModel):
    """Timestamps, soft deletion and cloning shared by every model."""

    created = models.DateTimeField(default=timezone.now, editable=False)

    updated = models.DateTimeField(auto_now=True)

    _safedelete_policy = SOFT_DELETE_CASCADE

    class Meta:
        abstract = True
        ordering: ClassVar[list] = ["-updated"]

    def __str__(self) -> str:
        """Return string representation of the model.

        Returns string representation based on model attributes in order of preference:
        1. 'name' attribute if present
        2. 'title' attribute if present and truthy
        3. Parent class string representation as fallback

        """
        if hasattr(self, "name"):
            return str(self.name)

        if hasattr(self, "title") and self.title:
            return str(self.title)

        return super().__str__()


def next_sequential_number(queryset: QuerySet, field_name: str = "number") -> int:
    """Return the next free value of ``field_name`` within ``queryset``.

    Must run inside ``transaction.atomic()``: the current highest row is locked with
    ``select_for_update()`` so concurrent callers queue behind it.
    """
    max_instance = queryset.select_for_update().order_by(f"-{field_name}").first()
    if not max_instance:
        return 1
    return getattr(max_instance, field_name) + 1
