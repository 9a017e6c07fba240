"""
Test configuration for attr_encryption
"""

import os
import sys

import django
import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'test_settings')


def pytest_configure():
    django.setup()


@pytest.fixture(autouse=True)
def fresh_encryption_backend():
    """Give every test its own cipher backend and an empty key cache."""
    from attr_encryption.backends import reset_encryption_backend

    reset_encryption_backend()
    yield
    reset_encryption_backend()
