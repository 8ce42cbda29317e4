import uuid
from decimal import Decimal

import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import core.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('email', models.EmailField(error_messages={'unique': 'A user with that email already exists.'}, help_text='Required. Enter a valid email address.', max_length=254, unique=True, verbose_name='email address')),
                ('name', models.CharField(blank=True, default='', max_length=200, verbose_name='name')),
                ('phone', models.CharField(blank=True, default='', max_length=20, verbose_name='phone')),
                ('profile_image', models.URLField(blank=True, default='', help_text='Public URL of the profile picture in the object store.', max_length=500, verbose_name='profile image')),
                ('role', models.CharField(choices=[('parent', 'Parent'), ('caregiver', 'Caregiver'), ('admin', 'Admin'), ('superadmin', 'Super Admin')], default='parent', help_text='Marketplace role. Changed only by an explicit admin action.', max_length=20, verbose_name='role')),
                ('status', models.CharField(choices=[('active', 'Active'), ('suspended', 'Suspended'), ('banned', 'Banned'), ('inactive', 'Inactive')], default='active', help_text='Account moderation status.', max_length=20, verbose_name='status')),
                ('status_reason', models.TextField(blank=True, default='', verbose_name='status reason')),
                ('status_updated_at', models.DateTimeField(blank=True, null=True, verbose_name='status updated at')),
                ('status_updated_by', models.UUIDField(blank=True, help_text='Id of the admin who made the last status change.', null=True, verbose_name='status updated by')),
                ('suspension_end_date', models.DateTimeField(blank=True, help_text='When a suspension lapses and the account is reactivated.', null=True, verbose_name='suspension end date')),
                ('suspension_count', models.PositiveIntegerField(default=0, verbose_name='suspension count')),
                ('last_suspension_at', models.DateTimeField(blank=True, null=True, verbose_name='last suspension at')),
                ('deleted_at', models.DateTimeField(blank=True, null=True, verbose_name='deleted at')),
                ('deleted_by', models.UUIDField(blank=True, null=True, verbose_name='deleted by')),
                ('created_by', models.UUIDField(blank=True, help_text='Id of the admin who created the account, if any.', null=True, verbose_name='created by')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'db_table': 'users',
                'ordering': ['-created_at'],
            },
            managers=[
                ('objects', core.models.MarketplaceUserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Job',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('description', models.TextField(blank=True, default='', verbose_name='description')),
                ('location', models.CharField(blank=True, default='', max_length=255, verbose_name='location')),
                ('budget', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'), message='Budget cannot be negative.')], verbose_name='budget')),
                ('hourly_rate', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'), message='Hourly rate cannot be negative.')], verbose_name='hourly rate')),
                ('status', models.CharField(choices=[('active', 'Active'), ('filled', 'Filled'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], default='active', max_length=20, verbose_name='status')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('caregiver', models.ForeignKey(blank=True, help_text='Caregiver assigned to the job, if any', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='jobs_assigned', to=settings.AUTH_USER_MODEL)),
                ('parent', models.ForeignKey(help_text='Parent who posted the job', on_delete=django.db.models.deletion.PROTECT, related_name='jobs_posted', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'job',
                'verbose_name_plural': 'jobs',
                'db_table': 'jobs',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=20, verbose_name='status')),
                ('date', models.DateField(blank=True, null=True, verbose_name='date')),
                ('start_time', models.TimeField(blank=True, null=True, verbose_name='start time')),
                ('end_time', models.TimeField(blank=True, null=True, verbose_name='end time')),
                ('total_hours', models.DecimalField(blank=True, decimal_places=2, help_text='Stored duration. When empty it is derived from start and end time.', max_digits=6, null=True, verbose_name='total hours')),
                ('hourly_rate', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='hourly rate')),
                ('total_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='total amount')),
                ('address', models.CharField(blank=True, default='', max_length=255, verbose_name='address')),
                ('notes', models.TextField(blank=True, default='', verbose_name='notes')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('caregiver', models.ForeignKey(help_text='Caregiver providing the service', on_delete=django.db.models.deletion.PROTECT, related_name='bookings_as_caregiver', to=settings.AUTH_USER_MODEL)),
                ('job', models.ForeignKey(blank=True, help_text='Job posting this booking fulfils, if any', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bookings', to='core.job')),
                ('parent', models.ForeignKey(help_text='Parent who booked the caregiver', on_delete=django.db.models.deletion.PROTECT, related_name='bookings_as_parent', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'booking',
                'verbose_name_plural': 'bookings',
                'db_table': 'bookings',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='CaregiverProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bio', models.TextField(blank=True, default='', verbose_name='bio')),
                ('experience_years', models.PositiveIntegerField(default=0, verbose_name='years of experience')),
                ('hourly_rate', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.00'), message='Hourly rate cannot be negative.')], verbose_name='hourly rate')),
                ('rating', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=3, validators=[django.core.validators.MinValueValidator(Decimal('0.00'), message='Rating cannot be negative.'), django.core.validators.MaxValueValidator(Decimal('5.00'), message='Rating cannot exceed 5.00.')], verbose_name='rating')),
                ('verification', models.JSONField(blank=True, default=dict, verbose_name='verification')),
                ('trust_score', models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)], verbose_name='trust score')),
                ('is_active', models.BooleanField(default=False, help_text='Listed in caregiver search. Set once documents are verified.', verbose_name='active')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('user', models.OneToOneField(help_text='Caregiver account this profile extends', on_delete=django.db.models.deletion.CASCADE, related_name='caregiver_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'caregiver profile',
                'verbose_name_plural': 'caregiver profiles',
                'db_table': 'caregiver_profiles',
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'), message='Amount cannot be negative.')], verbose_name='total amount')),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('disputed', 'Disputed'), ('refunded', 'Refunded')], default='pending', max_length=20, verbose_name='payment status')),
                ('notes', models.TextField(blank=True, default='', verbose_name='notes')),
                ('refund_reason', models.TextField(blank=True, default='', verbose_name='refund reason')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('booking', models.OneToOneField(help_text='Booking this payment settles', on_delete=django.db.models.deletion.PROTECT, related_name='payment', to='core.booking')),
                ('caregiver', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments_received', to=settings.AUTH_USER_MODEL)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments_made', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'payment',
                'verbose_name_plural': 'payments',
                'db_table': 'payments',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='PaymentProof',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('storage_path', models.CharField(blank=True, max_length=500, null=True, verbose_name='storage path')),
                ('public_url', models.URLField(blank=True, max_length=1000, null=True, verbose_name='public URL')),
                ('mime_type', models.CharField(blank=True, max_length=100, null=True, verbose_name='MIME type')),
                ('uploaded_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='uploaded at')),
                ('payment_type', models.CharField(default='deposit', max_length=30, verbose_name='payment type')),
                ('booking', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payment_proofs', to='core.booking')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payment_proofs_uploaded', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'payment proof',
                'verbose_name_plural': 'payment proofs',
                'db_table': 'payment_proofs',
                'ordering': ['-uploaded_at'],
            },
        ),
        migrations.CreateModel(
            name='UserReport',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('report_type', models.CharField(choices=[('caregiver_misconduct', 'Caregiver misconduct'), ('parent_maltreatment', 'Parent maltreatment'), ('inappropriate_behavior', 'Inappropriate behavior'), ('safety_concern', 'Safety concern'), ('payment_dispute', 'Payment dispute'), ('other', 'Other')], max_length=30, verbose_name='report type')),
                ('category', models.CharField(blank=True, default='', max_length=100, verbose_name='category')),
                ('title', models.CharField(max_length=200, verbose_name='title')),
                ('description', models.TextField(verbose_name='description')),
                ('severity', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=10, verbose_name='severity')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('under_review', 'Under review'), ('resolved', 'Resolved'), ('dismissed', 'Dismissed')], default='pending', max_length=20, verbose_name='status')),
                ('evidence_urls', models.JSONField(blank=True, default=list, verbose_name='evidence URLs')),
                ('admin_notes', models.TextField(blank=True, default='', verbose_name='admin notes')),
                ('reviewed_at', models.DateTimeField(blank=True, null=True, verbose_name='reviewed at')),
                ('resolution', models.TextField(blank=True, default='', verbose_name='resolution')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('booking', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reports', to='core.booking')),
                ('job', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reports', to='core.job')),
                ('reported_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reports_received', to=settings.AUTH_USER_MODEL)),
                ('reporter', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reports_filed', to=settings.AUTH_USER_MODEL)),
                ('reviewed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reports_reviewed', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'user report',
                'verbose_name_plural': 'user reports',
                'db_table': 'user_reports',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('admin_id', models.UUIDField(db_index=True, verbose_name='admin id')),
                ('action', models.CharField(db_index=True, max_length=100, verbose_name='action')),
                ('target_id', models.CharField(db_index=True, max_length=64, verbose_name='target id')),
                ('target_type', models.CharField(blank=True, default='', max_length=50, verbose_name='target type')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='metadata')),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='created at')),
            ],
            options={
                'verbose_name': 'audit log entry',
                'verbose_name_plural': 'audit log',
                'db_table': 'audit_logs',
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='UserStatusHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('active', 'Active'), ('suspended', 'Suspended'), ('banned', 'Banned'), ('inactive', 'Inactive')], max_length=20, verbose_name='status')),
                ('reason', models.TextField(blank=True, default='', verbose_name='reason')),
                ('changed_by', models.UUIDField(blank=True, help_text='Admin who made the change. Empty for automatic reactivation.', null=True, verbose_name='changed by')),
                ('changed_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='changed at')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_history', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'user status change',
                'verbose_name_plural': 'user status history',
                'db_table': 'user_status_history',
                'ordering': ['-changed_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='SystemSettings',
            fields=[
                ('id', models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False)),
                ('maintenance_mode', models.BooleanField(default=False, verbose_name='maintenance mode')),
                ('registration_enabled', models.BooleanField(default=True, verbose_name='registration enabled')),
                ('email_verification_required', models.BooleanField(default=True, verbose_name='email verification required')),
                ('background_check_required', models.BooleanField(default=True, verbose_name='background check required')),
                ('updated_by', models.UUIDField(blank=True, null=True, verbose_name='updated by')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
            ],
            options={
                'verbose_name': 'system settings',
                'verbose_name_plural': 'system settings',
                'db_table': 'system_settings',
            },
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['role'], name='users_role_0f2ee1_idx'),
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['status'], name='users_status_c3b0a4_idx'),
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['status', 'suspension_end_date'], name='users_status_5d1e7b_idx'),
        ),
        migrations.AddIndex(
            model_name='job',
            index=models.Index(fields=['status'], name='jobs_status_8a2c41_idx'),
        ),
        migrations.AddIndex(
            model_name='job',
            index=models.Index(fields=['parent'], name='jobs_parent__4e91d2_idx'),
        ),
        migrations.AddIndex(
            model_name='booking',
            index=models.Index(fields=['status'], name='bookings_status_2b7f60_idx'),
        ),
        migrations.AddIndex(
            model_name='booking',
            index=models.Index(fields=['parent', 'status'], name='bookings_parent__91c3ae_idx'),
        ),
        migrations.AddIndex(
            model_name='booking',
            index=models.Index(fields=['caregiver', 'status'], name='bookings_caregiv_6f0d85_idx'),
        ),
        migrations.AddIndex(
            model_name='payment',
            index=models.Index(fields=['payment_status'], name='payments_payment_7c1a39_idx'),
        ),
        migrations.AddIndex(
            model_name='userreport',
            index=models.Index(fields=['status'], name='user_report_status_3e8b12_idx'),
        ),
        migrations.AddIndex(
            model_name='userreport',
            index=models.Index(fields=['severity'], name='user_report_severit_a04f7c_idx'),
        ),
        migrations.AddIndex(
            model_name='userreport',
            index=models.Index(fields=['reported_user'], name='user_report_reporte_5b2d90_idx'),
        ),
        migrations.AddIndex(
            model_name='userstatushistory',
            index=models.Index(fields=['user', '-changed_at'], name='user_status_user_id_9d4c27_idx'),
        ),
    ]
