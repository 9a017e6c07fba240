"""
Models used by the attribute encryption test suite.
"""

from django.db import models

from attr_encryption.attributes import EncryptedAttribute
from attr_encryption.models import EncryptedModelMixin
from attr_encryption.options import Mode, from_callable, from_method

SECRET_KEY = 'test-attribute-encryption-key'


class Account(EncryptedModelMixin, models.Model):
    """Model with one encrypted attribute per supported configuration."""

    name = models.CharField(max_length=100, blank=True, default='')
    secret_key = models.CharField(max_length=64, blank=True, default=SECRET_KEY)
    ssn_enabled = models.BooleanField(default=True)

    encrypted_email = models.TextField(null=True, blank=True)
    encrypted_email_iv = models.CharField(max_length=64, null=True, blank=True)
    encrypted_email_salt = models.CharField(max_length=32, null=True, blank=True)
    encrypted_ssn = models.TextField(null=True, blank=True)
    encrypted_preferences = models.TextField(null=True, blank=True)

    email = EncryptedAttribute(key=SECRET_KEY, mode=Mode.PER_ATTRIBUTE_IV_AND_SALT)
    ssn = EncryptedAttribute(key=from_method('secret_key'), if_=from_method('ssn_enabled'))
    preferences = EncryptedAttribute(key=SECRET_KEY, marshal=True)

    class Meta:
        app_label = 'tests'


class Patient(EncryptedModelMixin, models.Model):
    """Model registering its attribute after the class body."""

    crypted_diagnosis = models.TextField(null=True, blank=True)

    class Meta:
        app_label = 'tests'


Patient.attr_encrypted('diagnosis', key=SECRET_KEY, prefix='crypted_', algorithm='aes-256-gcm')


def note_mode(note):
    if getattr(note, 'per_record', True):
        return Mode.PER_ATTRIBUTE_IV_AND_SALT
    return Mode.SINGLE_IV_AND_SALT


class Note(EncryptedModelMixin, models.Model):
    """Model whose IV mode is chosen per record."""

    per_record = models.BooleanField(default=True)

    encrypted_body = models.TextField(null=True, blank=True)
    encrypted_body_iv = models.CharField(max_length=64, null=True, blank=True)
    encrypted_body_salt = models.CharField(max_length=32, null=True, blank=True)

    body = EncryptedAttribute(key=SECRET_KEY, mode=from_callable(note_mode))

    class Meta:
        app_label = 'tests'
