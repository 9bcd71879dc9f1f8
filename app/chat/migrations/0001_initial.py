import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "customer_display_name",
                    models.CharField(
                        help_text="Customer display name at the time the conversation was opened",
                        max_length=150,
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="Timestamp of most recent message (for sorting the inbox)",
                    ),
                ),
                (
                    "last_message_preview",
                    models.CharField(
                        default="Conversation started",
                        help_text="Truncated text of the most recent message",
                        max_length=200,
                    ),
                ),
                (
                    "last_message_sender",
                    models.CharField(
                        choices=[("customer", "Customer"), ("admin", "Admin")],
                        default="customer",
                        help_text="Side that sent the most recent message",
                        max_length=10,
                    ),
                ),
                (
                    "unread_for_admin_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Customer messages not yet read by an admin",
                    ),
                ),
                (
                    "unread_for_customer_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Admin messages not yet read by the customer",
                    ),
                ),
                (
                    "last_customer_read_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Last time the customer marked the conversation as read",
                        null=True,
                    ),
                ),
                (
                    "is_open",
                    models.BooleanField(
                        db_index=True,
                        default=True,
                        help_text="Whether the conversation is still open",
                    ),
                ),
                (
                    "closed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When an admin closed the conversation",
                        null=True,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        help_text="Customer who opened this conversation",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="support_conversations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-last_message_at", "-created_at"],
                "indexes": [
                    models.Index(
                        condition=models.Q(("is_open", True)),
                        fields=["-last_message_at", "-created_at"],
                        name="chat_conv_inbox_idx",
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_open", True)),
                        fields=("customer",),
                        name="chat_conv_one_open_per_customer",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "sender_type",
                    models.CharField(
                        choices=[("customer", "Customer"), ("admin", "Admin")],
                        help_text="Side that sent this message",
                        max_length=10,
                    ),
                ),
                (
                    "text",
                    models.TextField(
                        help_text="Message text",
                        max_length=2000,
                        validators=[django.core.validators.MinLengthValidator(1)],
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the message was sent",
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.conversation",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who sent this message",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="support_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation", "created_at", "id"],
                        name="chat_msg_conv_order_idx",
                    ),
                    models.Index(
                        fields=["conversation", "sender_type", "created_at"],
                        name="chat_msg_conv_sender_idx",
                    ),
                ],
            },
        ),
    ]
