import uuid

import django.db.models.deletion
import django.utils.timezone
import model_utils.fields
from django.db import migrations, models


def base_model_fields():
    return [
        (
            "id",
            models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False),
        ),
        (
            "created",
            model_utils.fields.AutoCreatedField(
                db_index=True,
                default=django.utils.timezone.now,
                editable=False,
                verbose_name="created",
            ),
        ),
        (
            "modified",
            model_utils.fields.AutoLastModifiedField(
                db_index=True,
                default=django.utils.timezone.now,
                editable=False,
                verbose_name="modified",
            ),
        ),
        ("meta", models.JSONField(blank=True, default=dict, verbose_name="meta")),
    ]


def family_field():
    return (
        "family",
        models.ForeignKey(
            help_text="The family this model is associated with. Queries should use the `family` field.",
            on_delete=django.db.models.deletion.CASCADE,
            related_name="+",
            to="families.family",
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("families", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="CalendarEvent",
            fields=[
                *base_model_fields(),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("location", models.CharField(blank=True, max_length=255)),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("is_all_day", models.BooleanField(default=False)),
                (
                    "is_task",
                    models.BooleanField(
                        default=False, help_text="Task events track per-occurrence completion"
                    ),
                ),
                (
                    "is_recurring_exception",
                    models.BooleanField(
                        default=False,
                        help_text="True for snapshots that store a single modified occurrence of a series",
                    ),
                ),
                (
                    "recurrence_type",
                    models.CharField(
                        choices=[
                            ("NONE", "Does not repeat"),
                            ("DAILY", "Daily"),
                            ("WEEKLY", "Weekly"),
                            ("MONTHLY", "Monthly"),
                            ("YEARLY", "Yearly"),
                        ],
                        default="NONE",
                        help_text="How often the event repeats",
                        max_length=10,
                    ),
                ),
                (
                    "recurrence_interval",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="The interval between each repetition (e.g., every 2 weeks)",
                    ),
                ),
                (
                    "recurrence_until",
                    models.DateField(
                        blank=True, help_text="Date of the last possible occurrence", null=True
                    ),
                ),
                (
                    "recurrence_count",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Number of occurrences after which the recurrence ends",
                        null=True,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_events",
                        to="families.familymember",
                    ),
                ),
                family_field(),
                (
                    "participants",
                    models.ManyToManyField(
                        blank=True, related_name="calendar_events", to="families.familymember"
                    ),
                ),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="EventRecurrenceException",
            fields=[
                *base_model_fields(),
                (
                    "occurrence_date",
                    models.DateField(
                        help_text="The original date of the occurrence being excepted"
                    ),
                ),
                (
                    "kind",
                    models.CharField(
                        choices=[("cancelled", "Cancelled"), ("modified", "Modified")],
                        max_length=10,
                    ),
                ),
                family_field(),
                (
                    "modified_event",
                    models.ForeignKey(
                        blank=True,
                        help_text="If the occurrence is modified (not cancelled), points to the modified event",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="exception_for",
                        to="events.calendarevent",
                    ),
                ),
                (
                    "parent_event",
                    models.ForeignKey(
                        help_text="The recurring event this exception applies to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recurrence_exceptions",
                        to="events.calendarevent",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("parent_event", "occurrence_date"),
                        name="events_unique_exception_per_occurrence",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("kind", "modified"), ("modified_event__isnull", False)),
                            models.Q(("kind", "cancelled"), ("modified_event__isnull", True)),
                            _connector="OR",
                        ),
                        name="events_modified_event_iff_modified",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="EventTaskCompletion",
            fields=[
                *base_model_fields(),
                ("occurrence_date", models.DateField()),
                ("completed_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="task_completions",
                        to="events.calendarevent",
                    ),
                ),
                family_field(),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="task_completions",
                        to="families.familymember",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("event", "occurrence_date", "member"),
                        name="events_unique_completion_per_member",
                    ),
                ],
            },
        ),
    ]
