import datetime
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tables', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ReservationConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('max_hours_per_reservation', models.DecimalField(decimal_places=2, default=Decimal('4'), max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0.25'))])),
                ('max_reservations_per_user_per_day', models.PositiveSmallIntegerField(default=1, help_text='0 disables the daily limit.')),
                ('min_hours_in_advance', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('allowed_start_time', models.TimeField(default=datetime.time(8, 0))),
                ('allowed_end_time', models.TimeField(default=datetime.time(22, 0))),
                ('requires_approval_for_all_day', models.BooleanField(default=True)),
                ('allow_consecutive_reservations', models.BooleanField(default=True)),
                ('min_time_between_reservations_minutes', models.PositiveIntegerField(default=0, help_text='Minimum minutes between two reservations on the same table. 0 disables it.')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Reservation policy',
                'verbose_name_plural': 'Reservation policy',
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_time', models.DateTimeField(help_text='Stored in UTC.', verbose_name='Start')),
                ('end_time', models.DateTimeField(help_text='Stored in UTC.', verbose_name='End')),
                ('start_utc_offset', models.SmallIntegerField(default=0, help_text='UTC offset, in minutes, the start time was entered in.')),
                ('end_utc_offset', models.SmallIntegerField(default=0, help_text='UTC offset, in minutes, the end time was entered in.')),
                ('duration_hours', models.FloatField(default=0, editable=False)),
                ('num_members', models.PositiveSmallIntegerField(default=1)),
                ('num_guests', models.PositiveSmallIntegerField(default=0)),
                ('all_day', models.BooleanField(default=False)),
                ('reason', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], default='active', max_length=20)),
                ('approval_state', models.CharField(choices=[('not_required', 'Not required'), ('pending_approval', 'Pending approval'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='not_required', max_length=20)),
                ('rejection_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('table', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='tables.table')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reservations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Reservation',
                'verbose_name_plural': 'Reservations',
                'ordering': ['start_time'],
                'indexes': [
                    models.Index(fields=['table', 'status', 'start_time'], name='reservation_table_status_start'),
                    models.Index(fields=['user', 'status', 'start_time'], name='reservation_user_status_start'),
                    models.Index(fields=['approval_state'], name='reservation_approval_state'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('end_time__gt', models.F('start_time'))), name='reservation_valid_window'),
                ],
            },
        ),
    ]
