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
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from campmanager.mail.accounting import handle_payment_paid, track_payment_status
from campmanager.models.accounting import Payment
from campmanager.models.member import Member


# Member signals
@receiver(pre_save, sender=Member)
def pre_save_member(sender, instance, **kwargs):
    if instance.user_id and instance.user.email:
        instance.email = instance.user.email


# Payment signals
@receiver(pre_save, sender=Payment)
def pre_save_payment(sender, instance, **kwargs):
    track_payment_status(instance)


@receiver(post_save, sender=Payment)
def post_save_payment(sender, instance, **kwargs):
    handle_payment_paid(instance)
