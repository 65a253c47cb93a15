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
"""Actor resolution and the result envelope returned by public entry points."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING, Any

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from campmanager.models.member import Member, MemberRole
from campmanager.utils.core.exceptions import AuthorizationError, NotFoundError, PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from django.http import HttpRequest

    from campmanager.models.member import Participant

logger = logging.getLogger(__name__)

GENERIC_PERSISTENCE_ERROR = "The operation could not be saved, please try again"


@dataclass(frozen=True)
class Actor:
    """Identity and role of whoever triggers an action."""

    member_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN

    @classmethod
    def from_member(cls, member: Member) -> Actor:
        return cls(member_id=member.id, role=member.role)


@dataclass(frozen=True)
class ActionResult:
    success: bool
    error: str | None = None
    code: str | None = None
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> ActionResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: str) -> ActionResult:
        return cls(success=False, error=error, code=code)


def get_actor(request: HttpRequest) -> Actor:
    """Resolve the acting member of an authenticated request.

    Raises:
        AuthorizationError: If the user is anonymous or has no member profile

    """
    if not request.user.is_authenticated:
        raise AuthorizationError("Authentication required")
    try:
        return Actor.from_member(request.user.member)
    except Member.DoesNotExist as err:
        raise AuthorizationError("No member profile") from err


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Administrator role required")


def require_guardian_of(actor: Actor, participant: Participant) -> None:
    if participant.guardian_id != actor.member_id:
        raise AuthorizationError("Participant does not belong to this guardian")


def validation_message(err: ValidationError) -> str:
    return "; ".join(str(message) for message in err.messages)


def action_result(func: Callable[..., Any]) -> Callable[..., ActionResult]:
    """Turn the known error taxonomy raised by ``func`` into an ActionResult.

    Return values are wrapped in ``ActionResult.ok``; unexpected exceptions propagate.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> ActionResult:
        try:
            return ActionResult.ok(func(*args, **kwargs))
        except AuthorizationError as err:
            logger.warning("Unauthorized %s: %s", func.__name__, err)
            return ActionResult.fail(str(err), "forbidden")
        except NotFoundError as err:
            return ActionResult.fail(str(err), "not_found")
        except ValidationError as err:
            return ActionResult.fail(validation_message(err), "invalid")
        except (DatabaseError, PersistenceError):
            logger.exception("Persistence failure in %s", func.__name__)
            return ActionResult.fail(GENERIC_PERSISTENCE_ERROR, "persistence")

    return wrapper
