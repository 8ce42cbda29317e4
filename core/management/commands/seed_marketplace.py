# Seed Marketplace Management Command
import random
from datetime import time, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from faker import Faker

from core.models import (
    Booking,
    CaregiverProfile,
    Job,
    Payment,
    PaymentProof,
    SystemSettings,
    User,
    UserReport,
)

DEFAULT_PASSWORD = 'password123'

JOB_TITLES = [
    'Weekend babysitter', 'After-school nanny', 'Overnight infant care',
    'Toddler playdate helper', 'Homework helper', 'Summer nanny',
]

PROOF_MIME_TYPES = ['image/jpeg', 'image/png', 'application/pdf', None]


class Command(BaseCommand):
    help = 'Fills the database with demo parents, caregivers, jobs, bookings, payments and reports.'

    def add_arguments(self, parser):
        parser.add_argument('--parents', type=int, default=10, help='Number of parents to create.')
        parser.add_argument('--caregivers', type=int, default=5, help='Number of caregivers to create.')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data.')
        parser.add_argument(
            '--admin-email',
            default='admin@iyaya.test',
            help='Email of the superadmin account to create if it does not exist.',
        )

    def handle(self, *args, **options):
        if options['parents'] < 1 or options['caregivers'] < 1:
            raise CommandError('At least one parent and one caregiver are needed.')

        self.fake = Faker()
        if options['seed'] is not None:
            Faker.seed(options['seed'])
            random.seed(options['seed'])

        with transaction.atomic():
            self.create_admin(options['admin_email'])
            parents = self.create_users(User.ROLE_PARENT, options['parents'])
            caregivers = self.create_users(User.ROLE_CAREGIVER, options['caregivers'])
            self.create_profiles(caregivers)
            jobs = self.create_jobs(parents, caregivers)
            bookings = self.create_bookings(jobs)
            self.create_payments(bookings)
            self.create_reports(parents, caregivers)
            SystemSettings.objects.get_or_create(pk=1)

        self.stdout.write(self.style.SUCCESS('Demo data created successfully.'))

    def create_admin(self, email):
        if User.objects.filter(email=email).exists():
            self.stdout.write(f'Superadmin {email} already exists.')
            return
        User.objects.create_superuser(username=email, email=email, password=DEFAULT_PASSWORD, name='Site Admin')
        self.stdout.write(f'Created superadmin {email} (password: {DEFAULT_PASSWORD}).')

    def create_users(self, role, count):
        self.stdout.write(f'Creating {count} {role}s...')
        users = []
        for _ in range(count):
            email = self.fake.unique.email()
            users.append(User.objects.create_user(
                username=email,
                email=email,
                password=DEFAULT_PASSWORD,
                name=self.fake.name(),
                phone=self.fake.phone_number()[:20],
                role=role,
            ))
        return users

    def create_profiles(self, caregivers):
        for caregiver in caregivers:
            CaregiverProfile.objects.create(
                user=caregiver,
                bio=self.fake.paragraph(nb_sentences=3),
                experience_years=random.randint(0, 15),
                hourly_rate=Decimal(random.randint(150, 400)),
                rating=Decimal(str(round(random.uniform(3, 5), 2))),
                trust_score=random.randint(40, 100),
                is_active=random.choice([True, False]),
            )

    def create_jobs(self, parents, caregivers):
        self.stdout.write('Creating jobs...')
        jobs = []
        for parent in parents:
            for _ in range(random.randint(1, 3)):
                job_status = random.choice([status for status, _label in Job.STATUS_CHOICES])
                jobs.append(Job.objects.create(
                    title=random.choice(JOB_TITLES),
                    description=self.fake.paragraph(nb_sentences=2),
                    location=self.fake.city(),
                    budget=Decimal(random.randint(500, 5000)),
                    hourly_rate=Decimal(random.randint(150, 400)),
                    parent=parent,
                    caregiver=random.choice(caregivers) if job_status != Job.STATUS_ACTIVE else None,
                    status=job_status,
                ))
        return jobs

    def create_bookings(self, jobs):
        self.stdout.write('Creating bookings...')
        bookings = []
        for job in jobs:
            if job.caregiver is None:
                continue
            start_hour = random.randint(7, 15)
            hours = random.randint(2, 6)
            rate = job.hourly_rate
            bookings.append(Booking.objects.create(
                parent=job.parent,
                caregiver=job.caregiver,
                job=job,
                status=random.choice([status for status, _label in Booking.STATUS_CHOICES]),
                date=(timezone.now() + timedelta(days=random.randint(-30, 30))).date(),
                start_time=time(start_hour),
                end_time=time(start_hour + hours),
                hourly_rate=rate,
                total_amount=rate * hours,
                address=self.fake.address().replace('\n', ', ')[:255],
            ))
        return bookings

    def create_payments(self, bookings):
        self.stdout.write('Creating payments and proofs...')
        for booking in bookings:
            Payment.objects.create(
                booking=booking,
                parent=booking.parent,
                caregiver=booking.caregiver,
                total_amount=booking.total_amount,
                payment_status=random.choice([status for status, _label in Payment.STATUS_CHOICES]),
            )
            # Some bookings get no proof, some a proof with a suspicious MIME type.
            for _ in range(random.randint(0, 2)):
                path = f'payment-proofs/{booking.pk}/{self.fake.uuid4()}.jpg'
                PaymentProof.objects.create(
                    booking=booking,
                    storage_path=path,
                    public_url=f'https://storage.iyaya.test/{path}',
                    mime_type=random.choice(PROOF_MIME_TYPES),
                    uploaded_by=booking.parent,
                )

    def create_reports(self, parents, caregivers):
        self.stdout.write('Creating reports...')
        for _ in range(max(1, len(parents) // 3)):
            reporter = random.choice(parents)
            UserReport.objects.create(
                reporter=reporter,
                reported_user=random.choice(caregivers),
                report_type=random.choice([choice for choice, _label in UserReport.REPORT_TYPE_CHOICES]),
                title=self.fake.sentence(nb_words=5),
                description=self.fake.paragraph(nb_sentences=3),
                severity=random.choice([choice for choice, _label in UserReport.SEVERITY_CHOICES]),
            )
