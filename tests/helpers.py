"""
Shared builders for marketplace test data.
"""

import itertools
from datetime import time
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from core.authentication import Actor
from core.models import Booking, Job, Payment, PaymentProof

User = get_user_model()

_sequence = itertools.count(1)


def make_user(role='parent', email=None, **extra):
    """Create an account with a unique email for ``role``."""
    email = email or f'{role}{next(_sequence)}@example.com'
    return User.objects.create_user(
        username=email,
        email=email,
        password='testpass123',
        name=extra.pop('name', f'Test {role.title()}'),
        role=role,
        **extra
    )


def actor_for(user):
    return Actor.from_user(user)


def make_job(parent, status='active', caregiver=None, **extra):
    return Job.objects.create(
        title=extra.pop('title', 'Weekend babysitter'),
        description=extra.pop('description', 'Two kids, ages 4 and 7'),
        location=extra.pop('location', 'Quezon City'),
        budget=extra.pop('budget', Decimal('1500.00')),
        parent=parent,
        caregiver=caregiver,
        status=status,
        **extra
    )


def make_booking(parent, caregiver, status='pending', job=None, **extra):
    return Booking.objects.create(
        parent=parent,
        caregiver=caregiver,
        job=job,
        status=status,
        start_time=extra.pop('start_time', time(9, 0)),
        end_time=extra.pop('end_time', time(13, 30)),
        hourly_rate=extra.pop('hourly_rate', Decimal('200.00')),
        total_amount=extra.pop('total_amount', Decimal('900.00')),
        address=extra.pop('address', '12 Mabini St'),
        **extra
    )


def make_payment(booking, status='pending', **extra):
    return Payment.objects.create(
        booking=booking,
        parent=booking.parent,
        caregiver=booking.caregiver,
        total_amount=extra.pop('total_amount', booking.total_amount),
        payment_status=status,
        **extra
    )


def make_proof(booking, **overrides):
    """A well-formed image proof unless ``overrides`` say otherwise."""
    values = {
        'storage_path': f'payment-proofs/{booking.pk}/receipt.jpg',
        'public_url': f'https://storage.example.com/payment-proofs/{booking.pk}/receipt.jpg',
        'mime_type': 'image/jpeg',
        'uploaded_by': booking.parent,
    }
    values.update(overrides)
    return PaymentProof.objects.create(booking=booking, **values)


def client_for(user):
    """APIClient authenticated with a bearer token for ``user``."""
    client = APIClient()
    token = str(RefreshToken.for_user(user).access_token)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    return client
