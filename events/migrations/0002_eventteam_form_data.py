from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("events", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="eventteam",
            name="form_data",
            field=models.JSONField(
                blank=True, default=dict, help_text="Leader's answers, stored when the team completes"
            ),
        ),
    ]
