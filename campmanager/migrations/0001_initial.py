import decimal

import django.core.validators
import django.db.models.deletion
import django.db.models.expressions
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def base_fields():
    return [
        ("id", models.AutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
        ("deleted", models.DateTimeField(db_index=True, editable=False, null=True)),
        ("deleted_by_cascade", models.BooleanField(default=False, editable=False)),
        ("created", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
        ("updated", models.DateTimeField(auto_now=True)),
    ]


CURRENCY_CHOICES = [("PLN", "PLN"), ("EUR", "EUR")]

PAYMENT_TYPE_CHOICES = [("installment", "Installment"), ("season_pass", "Season pass"), ("full", "Full payment")]

TRANSACTION_METHOD_CHOICES = [("cash", "Cash"), ("transfer", "Bank transfer")]

DUE_DATE_ORDERING = [
    django.db.models.expressions.OrderBy(django.db.models.expressions.F("due_date"), nulls_last=True),
    "installment_number",
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Group",
            fields=[
                *base_fields(),
                ("name", models.CharField(max_length=100, verbose_name="Name")),
                ("description", models.TextField(blank=True, null=True)),
            ],
            options={
                "ordering": ["name"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                *base_fields(),
                ("email", models.CharField(editable=False, max_length=200)),
                (
                    "role",
                    models.CharField(
                        choices=[("parent", "Parent"), ("admin", "Administrator")],
                        db_index=True,
                        default="parent",
                        max_length=10,
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=100, verbose_name="Name")),
                ("surname", models.CharField(blank=True, max_length=100, verbose_name="Surname")),
                ("phone", models.CharField(blank=True, max_length=30, null=True, verbose_name="Phone")),
                ("address_street", models.CharField(blank=True, max_length=200, null=True, verbose_name="Street")),
                ("address_zip", models.CharField(blank=True, max_length=10, null=True, verbose_name="Postal code")),
                ("address_city", models.CharField(blank=True, max_length=100, null=True, verbose_name="City")),
                (
                    "pesel",
                    models.CharField(
                        blank=True,
                        help_text="National identification number, printed on participation contracts",
                        max_length=11,
                        null=True,
                        verbose_name="PESEL",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="member",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-updated"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Participant",
            fields=[
                *base_fields(),
                ("name", models.CharField(max_length=100, verbose_name="Name")),
                ("surname", models.CharField(max_length=100, verbose_name="Surname")),
                ("birth_date", models.DateField(blank=True, null=True, verbose_name="Birth date")),
                ("notes", models.TextField(blank=True, null=True)),
                (
                    "guardian",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="campmanager.member",
                    ),
                ),
                (
                    "groups",
                    models.ManyToManyField(blank=True, related_name="participants", to="campmanager.group"),
                ),
            ],
            options={
                "ordering": ["surname", "name"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Trip",
            fields=[
                *base_fields(),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(blank=True, null=True)),
                ("location", models.CharField(blank=True, max_length=200, null=True, verbose_name="Location")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=10,
                    ),
                ),
                (
                    "declaration_deadline",
                    models.DateField(
                        blank=True,
                        help_text="Last day on which guardians can declare participation",
                        null=True,
                        verbose_name="Declaration deadline",
                    ),
                ),
                ("departure_datetime", models.DateTimeField(verbose_name="Departure")),
                (
                    "departure_location",
                    models.CharField(blank=True, max_length=200, verbose_name="Departure location"),
                ),
                (
                    "departure_stop2_datetime",
                    models.DateTimeField(blank=True, null=True, verbose_name="Second stop departure"),
                ),
                ("departure_stop2_location", models.CharField(blank=True, max_length=200, null=True)),
                ("return_datetime", models.DateTimeField(verbose_name="Return")),
                ("return_location", models.CharField(blank=True, max_length=200, verbose_name="Return location")),
                (
                    "return_stop2_datetime",
                    models.DateTimeField(blank=True, null=True, verbose_name="Second stop return"),
                ),
                ("return_stop2_location", models.CharField(blank=True, max_length=200, null=True)),
                (
                    "bank_account_pln",
                    models.CharField(blank=True, max_length=50, null=True, verbose_name="Bank account (PLN)"),
                ),
                (
                    "bank_account_eur",
                    models.CharField(blank=True, max_length=50, null=True, verbose_name="Bank account (EUR)"),
                ),
                ("groups", models.ManyToManyField(blank=True, related_name="trips", to="campmanager.group")),
            ],
            options={
                "ordering": ["departure_datetime"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Registration",
            fields=[
                *base_fields(),
                (
                    "registration_type",
                    models.CharField(
                        choices=[("parent", "Parent"), ("admin", "Administrator")],
                        default="parent",
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("cancelled", "Cancelled")],
                        db_index=True,
                        default="active",
                        max_length=10,
                    ),
                ),
                (
                    "participation_status",
                    models.CharField(
                        choices=[
                            ("unconfirmed", "Unconfirmed"),
                            ("confirmed", "Confirmed"),
                            ("not_going", "Not going"),
                            ("other", "Other"),
                        ],
                        db_index=True,
                        default="unconfirmed",
                        max_length=15,
                    ),
                ),
                (
                    "departure_stop",
                    models.CharField(
                        blank=True,
                        choices=[("stop1", "Main departure point"), ("stop2", "Second stop"), ("own", "Own transport")],
                        max_length=10,
                        null=True,
                    ),
                ),
                ("participation_note", models.TextField(blank=True, null=True)),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="campmanager.participant",
                    ),
                ),
                (
                    "registered_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registrations_made",
                        to="campmanager.member",
                    ),
                ),
                (
                    "trip",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="campmanager.trip",
                    ),
                ),
            ],
            options={
                "ordering": ["created"],
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(
                        fields=("trip", "participant", "deleted"),
                        name="unique_trip_participant_with_optional",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("deleted", None)),
                        fields=("trip", "participant"),
                        name="unique_trip_participant_without_optional",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentTemplate",
            fields=[
                *base_fields(),
                ("payment_type", models.CharField(choices=PAYMENT_TYPE_CHOICES, max_length=15)),
                ("installment_number", models.PositiveIntegerField(blank=True, null=True)),
                ("is_first_installment", models.BooleanField(default=False)),
                ("includes_season_pass", models.BooleanField(default=False)),
                ("category_name", models.CharField(blank=True, max_length=100, null=True)),
                (
                    "birth_year_from",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="First birth year eligible for the season pass (inclusive)",
                        null=True,
                    ),
                ),
                (
                    "birth_year_to",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Last birth year eligible for the season pass (inclusive)",
                        null=True,
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
                    ),
                ),
                ("currency", models.CharField(choices=CURRENCY_CHOICES, default="PLN", max_length=3)),
                (
                    "due_date",
                    models.DateField(blank=True, help_text="Leave empty for a due date by agreement", null=True),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[("cash", "Cash"), ("transfer", "Bank transfer"), ("both", "Cash or bank transfer")],
                        max_length=10,
                        null=True,
                    ),
                ),
                (
                    "trip",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payment_templates",
                        to="campmanager.trip",
                    ),
                ),
            ],
            options={
                "ordering": DUE_DATE_ORDERING,
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                *base_fields(),
                ("payment_type", models.CharField(choices=PAYMENT_TYPE_CHOICES, max_length=15)),
                ("installment_number", models.PositiveIntegerField(blank=True, null=True)),
                ("original_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(choices=CURRENCY_CHOICES, default="PLN", max_length=3)),
                ("due_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("partially_paid", "Partially paid"),
                            ("overdue", "Overdue"),
                            ("partially_paid_overdue", "Partially paid, overdue"),
                            ("paid", "Paid"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=25,
                    ),
                ),
                ("amount_paid", models.DecimalField(decimal_places=2, default=decimal.Decimal("0"), max_digits=10)),
                (
                    "discount_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(decimal.Decimal("0")),
                            django.core.validators.MaxValueValidator(decimal.Decimal("100")),
                        ],
                    ),
                ),
                ("discount_applied_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                (
                    "payment_method_used",
                    models.CharField(blank=True, choices=TRANSACTION_METHOD_CHOICES, max_length=10, null=True),
                ),
                ("admin_notes", models.TextField(blank=True, null=True)),
                (
                    "discount_applied_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="discounts_applied",
                        to="campmanager.member",
                    ),
                ),
                (
                    "marked_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments_marked",
                        to="campmanager.member",
                    ),
                ),
                (
                    "registration",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="campmanager.registration",
                    ),
                ),
                (
                    "template",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payments",
                        to="campmanager.paymenttemplate",
                    ),
                ),
            ],
            options={
                "ordering": DUE_DATE_ORDERING,
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(
                            ("deleted", None),
                            ("template__isnull", False),
                            models.Q(("status", "cancelled"), _negated=True),
                        ),
                        fields=("registration", "template"),
                        name="unique_live_payment_per_template",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentTransaction",
            fields=[
                *base_fields(),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(choices=CURRENCY_CHOICES, default="PLN", max_length=3)),
                ("transaction_date", models.DateField()),
                ("payment_method", models.CharField(choices=TRANSACTION_METHOD_CHOICES, max_length=10)),
                ("notes", models.TextField(blank=True, null=True)),
                (
                    "payment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="campmanager.payment",
                    ),
                ),
                (
                    "recorded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions_recorded",
                        to="campmanager.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-transaction_date", "-created"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="ContractTemplate",
            fields=[
                *base_fields(),
                ("template_text", models.TextField(verbose_name="Template")),
                (
                    "is_active",
                    models.BooleanField(
                        default=False,
                        help_text="Contracts are issued on confirmation only while the template is active",
                    ),
                ),
                ("activated_at", models.DateTimeField(blank=True, null=True)),
                (
                    "activated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="contract_templates_activated",
                        to="campmanager.member",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="contract_templates",
                        to="campmanager.member",
                    ),
                ),
                (
                    "trip",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="contract_template",
                        to="campmanager.trip",
                    ),
                ),
            ],
            options={
                "ordering": ["-updated"],
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Contract",
            fields=[
                *base_fields(),
                ("contract_text", models.TextField()),
                ("year", models.PositiveIntegerField()),
                ("number", models.PositiveIntegerField()),
                ("contract_number", models.CharField(db_index=True, editable=False, max_length=20)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                (
                    "accepted_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="contracts_accepted",
                        to="campmanager.member",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="contracts_issued",
                        to="campmanager.member",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="contracts",
                        to="campmanager.participant",
                    ),
                ),
                (
                    "registration",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="contracts",
                        to="campmanager.registration",
                    ),
                ),
                (
                    "trip",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="contracts",
                        to="campmanager.trip",
                    ),
                ),
            ],
            options={
                "ordering": ["-year", "-number"],
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(
                        fields=("number", "year", "deleted"),
                        name="unique_contract_number_with_optional",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("deleted", None)),
                        fields=("number", "year"),
                        name="unique_contract_number_without_optional",
                    ),
                    models.UniqueConstraint(
                        fields=("trip", "participant", "deleted"),
                        name="unique_contract_participant_with_optional",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("deleted", None)),
                        fields=("trip", "participant"),
                        name="unique_contract_participant_without_optional",
                    ),
                ],
            },
        ),
    ]
