import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Venue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('contact_email', models.EmailField(blank=True, default='', max_length=254)),
                ('country_code', models.CharField(default='GB', max_length=2)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(blank=True, default='', max_length=200)),
                ('event_date', models.DateField()),
                ('status', models.CharField(choices=[('active', 'Active'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], default='active', max_length=20)),
                ('greeting_text', models.TextField(blank=True, default='')),
                ('custom_greeting_audio_url', models.URLField(blank=True, default='', max_length=1000)),
                ('ai_greeting_audio_url', models.URLField(blank=True, default='', max_length=1000)),
                ('max_message_duration', models.PositiveIntegerField(blank=True, null=True)),
                ('phone_number', models.CharField(blank=True, max_length=30, null=True)),
                ('phone_number_sid', models.CharField(blank=True, max_length=64, null=True)),
                ('phone_purchased_at', models.DateTimeField(blank=True, null=True)),
                ('phone_release_scheduled_for', models.DateTimeField(blank=True, null=True)),
                ('phone_released_at', models.DateTimeField(blank=True, null=True)),
                ('provisioning_lease_until', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='events', to=settings.AUTH_USER_MODEL)),
                ('venue', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='events', to='events.venue')),
            ],
            options={
                'ordering': ['event_date'],
            },
        ),
        migrations.CreateModel(
            name='Message',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('call_sid', models.CharField(max_length=64)),
                ('recording_sid', models.CharField(max_length=64, unique=True)),
                ('carrier_recording_url', models.URLField(blank=True, default='', max_length=1000)),
                ('audio_path', models.CharField(max_length=500)),
                ('audio_url', models.CharField(max_length=1000)),
                ('duration_seconds', models.PositiveIntegerField(default=0)),
                ('caller_number', models.CharField(blank=True, default='', max_length=30)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='events.event')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddConstraint(
            model_name='event',
            constraint=models.UniqueConstraint(condition=models.Q(('phone_number__isnull', False), ('phone_released_at__isnull', True)), fields=('phone_number',), name='events_live_phone_number_unique'),
        ),
        migrations.AddIndex(
            model_name='event',
            index=models.Index(fields=['phone_number', 'status'], name='events_phone_status_idx'),
        ),
        migrations.AddIndex(
            model_name='event',
            index=models.Index(fields=['status', 'event_date'], name='events_status_date_idx'),
        ),
        migrations.AddIndex(
            model_name='event',
            index=models.Index(fields=['phone_release_scheduled_for'], name='events_release_due_idx'),
        ),
        migrations.AddIndex(
            model_name='message',
            index=models.Index(fields=['event', 'created_at'], name='messages_event_created_idx'),
        ),
    ]
