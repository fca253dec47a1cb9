from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("event_id", models.CharField(max_length=255, unique=True, verbose_name="event id")),
                ("type", models.CharField(db_index=True, max_length=100, verbose_name="type")),
                ("outcome", models.CharField(max_length=30, verbose_name="outcome")),
                ("order_id", models.UUIDField(blank=True, null=True, verbose_name="order id")),
                ("processed_at", models.DateTimeField(auto_now_add=True, verbose_name="processed at")),
            ],
            options={
                "verbose_name": "Webhook event",
                "verbose_name_plural": "Webhook events",
                "ordering": ["-processed_at"],
            },
        ),
    ]
