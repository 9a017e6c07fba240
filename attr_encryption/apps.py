"""
Attribute Encryption App Configuration
"""

from django.apps import AppConfig


class AttrEncryptionConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'attr_encryption'
    verbose_name = 'Attribute Encryption'
