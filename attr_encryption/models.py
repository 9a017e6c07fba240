"""
Django model support for encrypted attributes.

Usage::

    class Account(EncryptedModelMixin, models.Model):
        encrypted_email = models.TextField(null=True, blank=True)
        encrypted_email_iv = models.CharField(max_length=64, null=True, blank=True)
        encrypted_email_salt = models.CharField(max_length=32, null=True, blank=True)

        email = EncryptedAttribute(key='secret', mode=Mode.PER_ATTRIBUTE_IV_AND_SALT)

Storage, IV and salt columns are ordinary model fields. Encrypted values
are base64 encoded by default so they fit text columns.
"""

import logging

from django.core.exceptions import FieldDoesNotExist

from .attributes import AttrEncrypted

logger = logging.getLogger(__name__)


class EncryptedModelMixin(AttrEncrypted):
    """
    Mixin for ``django.db.models.Model`` subclasses.

    Routes encrypted keyword arguments of the constructor through the
    attribute setters and drops cached plaintext on ``refresh_from_db``.
    """

    attr_encrypted_options = {'encode': True}

    def __init__(self, *args, **kwargs):
        cls = type(self)
        encrypted = {
            name: kwargs.pop(name)
            for name in list(kwargs)
            if cls.is_attr_encrypted(name)
        }
        super().__init__(*args, **kwargs)
        self.assign_attributes(encrypted)

    @classmethod
    def _attribute_already_implemented(cls, name: str) -> bool:
        if super()._attribute_already_implemented(name):
            return True
        meta = cls.__dict__.get('_meta')
        if meta is None:
            return False
        try:
            meta.get_field(name)
        except FieldDoesNotExist:
            return False
        return True

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self.clear_encrypted_cache()
        logger.debug(f"Cleared encrypted attribute cache for {type(self).__name__} {self.pk}")

    def update_attributes(self, values, save=True, **save_kwargs):
        """
        Bulk-assign ``values`` and optionally save.

        Returns:
            The instance
        """
        self.assign_attributes(values)
        if save:
            self.save(**save_kwargs)
        return self
