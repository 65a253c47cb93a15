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

import logging
import traceback
from functools import wraps
from typing import TYPE_CHECKING, Any

from background_task import background
from django.conf import settings as conf_settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

from campmanager.models.member import Member
from campmanager.utils.core.exceptions import NotificationError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

INTERNAL_KWARGS = {"schedule", "repeat", "repeat_until", "remove_existing_tasks"}


def background_auto(schedule: Any = 0, **background_kwargs: Any) -> Any:
    """Register a function as a background task, or call it inline.

    With AUTO_BACKGROUND_TASKS the call runs in-process and the scheduling keyword
    arguments are dropped; otherwise it is queued for the task runner.
    """

    def decorator(original_function: Callable[..., Any]) -> Callable[..., Any]:
        background_task = background(schedule=schedule, **background_kwargs)(original_function)

        @wraps(original_function)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if getattr(conf_settings, "AUTO_BACKGROUND_TASKS", False):
                filtered_kwargs = {key: value for key, value in kwargs.items() if key not in INTERNAL_KWARGS}
                return original_function(*args, **filtered_kwargs)
            return background_task(*args, **kwargs)

        wrapper.task = background_task
        return wrapper

    return decorator


# MAIL


def mail_error(subject: str, email_body: str, exception: Exception | None = None) -> None:
    """Log a failed mail and forward the failure to the configured ADMINS.

    Args:
        subject: Email subject that failed
        email_body: Email body that failed
        exception: Exception that caused the failure

    """
    logger.error("Mail error: %s", exception)
    logger.error("Subject: %s", subject)
    logger.error("Body: %s", email_body)
    if exception:
        error_notification_body = f"{traceback.format_exc()} <br /><br /> {subject} <br /><br /> {email_body}"
    else:
        error_notification_body = f"{subject} <br /><br /> {email_body}"
    for _admin_name, admin_email in conf_settings.ADMINS:
        try:
            _deliver("[CampManager] Mail error", error_notification_body, admin_email)
        except Exception:
            logger.exception("Could not notify admin %s of mail error", admin_email)


def _deliver(subject: str, body: str, recipient: str) -> None:
    email_message = EmailMultiAlternatives(
        subject,
        strip_tags(body),
        conf_settings.DEFAULT_FROM_EMAIL,
        [recipient],
    )
    email_message.attach_alternative(body, "text/html")
    email_message.send()


def my_send_simple_mail(subject: str, body: str, recipient: str) -> None:
    """Send an HTML mail with a plain-text alternative.

    Raises:
        NotificationError: When the backend fails; the failure is reported through mail_error first

    """
    try:
        _deliver(subject, body, recipient)

        if conf_settings.DEBUG:
            logger.info("Sending email to: %s", recipient)
            logger.info("Subject: %s", subject)
            logger.debug("Body: %s", body)

    except Exception as email_sending_exception:
        mail_error(subject, body, email_sending_exception)
        raise NotificationError(str(email_sending_exception)) from email_sending_exception


@background_auto(queue="mail")
def my_send_mail_bkg(subject: str, body: str, recipient: str) -> None:
    """Background task delivering a queued mail."""
    my_send_simple_mail(subject, body, recipient)


def my_send_mail(subject: str, body: str, recipient: str | Member, schedule: int = 0) -> None:
    """Queue a mail for delivery.

    Args:
        subject: Email subject line
        body: Email body content (HTML or plain text)
        recipient: Email recipient address or Member instance
        schedule: Delay in seconds before sending email

    """
    subject = subject.replace("  ", " ")

    if isinstance(recipient, Member):
        recipient = recipient.email

    if not recipient:
        logger.warning("Mail '%s' dropped: no recipient address", subject)
        return

    my_send_mail_bkg(str(subject), str(body), recipient, schedule=schedule)
