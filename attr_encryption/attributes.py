"""
Transparent encrypted attributes for Python classes.

Example::

    class User(AttrEncrypted):
        email = EncryptedAttribute(key='some secret key')

    user = User()
    user.email = 'test@example.com'
    user.encrypted_email        # ciphertext
    User.decrypt_email(user.encrypted_email)

Attributes can also be registered after the class body::

    User.attr_encrypted('ssn', 'phone', key=from_method('secret_key'))
"""

import logging
from typing import Any, Dict, Mapping

from .codec import decrypt_value, encrypt_value
from .dispatch import defined_on
from .exceptions import EncryptionConfigurationError
from .options import resolve
from .registry import FieldRegistry, FieldSpec

logger = logging.getLogger(__name__)

REGISTRY_ATTR = '_attr_encrypted_registry'
CACHE_ATTR = '_attr_encrypted_cache'


class StorageAttribute:
    """Plain attribute holding ciphertext, IV or salt; reads ``None`` until set."""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self.name)

    def __set__(self, instance, value):
        instance.__dict__[self.name] = value

    def __delete__(self, instance):
        instance.__dict__.pop(self.name, None)


class EncryptedAttribute:
    """
    Plaintext view of an encrypted attribute.

    Reads decrypt the storage attribute once and cache the plaintext on the
    instance; writes encrypt into the storage attribute and refresh the cache.
    """

    def __init__(self, name: str = None, **options):
        self.name = name
        self.options = options

    def __set_name__(self, owner, name):
        self.name = name
        if not (isinstance(owner, type) and issubclass(owner, AttrEncrypted)):
            raise EncryptionConfigurationError(
                f"{owner.__name__}.{name} needs {owner.__name__} to subclass AttrEncrypted"
            )
        owner._register_encrypted([name], self.options, descriptor=self)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        cache = instance._attr_encrypted_plaintext()
        value = cache.get(self.name)
        if value is None:
            spec = type(instance).encrypted_attribute(self.name)
            value = instance.decrypt(self.name, getattr(instance, spec.attribute))
            cache[self.name] = value
        return value

    def __set__(self, instance, value):
        spec = type(instance).encrypted_attribute(self.name)
        setattr(instance, spec.attribute, instance.encrypt(self.name, value))
        instance._attr_encrypted_plaintext()[self.name] = value

    def __delete__(self, instance):
        spec = type(instance).encrypted_attribute(self.name)
        setattr(instance, spec.attribute, None)
        instance._attr_encrypted_plaintext().pop(self.name, None)

    def __repr__(self):
        return f"<EncryptedAttribute {self.name}>"


def _is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return len(value) == 0
    except TypeError:
        return False


class AttrEncrypted:
    """
    Mixin adding encrypted attributes to a class.

    Class-wide defaults go in ``attr_encrypted_options``; subclasses start
    from a copy of their parent's defaults and registered attributes.
    """

    attr_encrypted_options: Mapping[str, Any] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.attr_encrypted_registry()

    # Registry

    @classmethod
    def attr_encrypted_registry(cls) -> FieldRegistry:
        """Return the registry of ``cls``, copying it from the parent on first use."""
        registry = cls.__dict__.get(REGISTRY_ATTR)
        if registry is None:
            parents = [
                base for base in cls.__bases__
                if isinstance(base, type) and issubclass(base, AttrEncrypted)
            ]
            registry = parents[0].attr_encrypted_registry().copy() if parents else FieldRegistry()
            declared = cls.__dict__.get('attr_encrypted_options')
            if declared:
                registry.configure(**declared)
            setattr(cls, REGISTRY_ATTR, registry)
        return registry

    @classmethod
    def configure_attr_encrypted(cls, **options) -> None:
        """Change the defaults used by later registrations on ``cls``."""
        cls.attr_encrypted_registry().configure(**options)

    @classmethod
    def attr_encrypted(cls, *attributes, **options):
        """
        Register encrypted attributes.

        Args:
            *attributes: Logical attribute names
            **options: Encryption options; unknown keys go to the cipher

        Returns:
            List of the registered :class:`FieldSpec` objects
        """
        return cls._register_encrypted(attributes, options)

    attr_encryptor = attr_encrypted

    @classmethod
    def _register_encrypted(cls, attributes, options, descriptor=None):
        registry = cls.attr_encrypted_registry()
        specs = registry.register(attributes, options)
        for spec in specs:
            if descriptor is None:
                setattr(cls, spec.name, EncryptedAttribute(spec.name))
            for name in spec.storage_attributes:
                if not cls._attribute_already_implemented(name):
                    setattr(cls, name, StorageAttribute(name))
            registry.router.bind(cls, spec.name)
        return specs

    @classmethod
    def _attribute_already_implemented(cls, name: str) -> bool:
        return defined_on(cls, name)

    @classmethod
    def is_attr_encrypted(cls, attribute) -> bool:
        return cls.attr_encrypted_registry().is_encrypted(str(attribute))

    @classmethod
    def encrypted_attribute(cls, attribute) -> FieldSpec:
        """
        Raises:
            AttributeNotEncryptedError: If ``attribute`` is not registered
        """
        return cls.attr_encrypted_registry().lookup(str(attribute))

    @classmethod
    def encrypted_attributes(cls) -> Dict[str, FieldSpec]:
        return cls.attr_encrypted_registry().specs()

    # Class-scoped codec

    @classmethod
    def encrypt_attribute(cls, attribute, value, **options):
        """Encrypt ``value`` for ``attribute`` with options evaluated against the class."""
        spec = cls.encrypted_attribute(attribute)
        return encrypt_value(spec.name, value, resolve(spec, cls, options))

    @classmethod
    def decrypt_attribute(cls, attribute, encrypted_value, **options):
        """Decrypt ``encrypted_value`` for ``attribute`` with options evaluated against the class."""
        spec = cls.encrypted_attribute(attribute)
        return decrypt_value(spec.name, encrypted_value, resolve(spec, cls, options))

    @classmethod
    def route_codec_call(cls, method_name: str):
        """Return the ``encrypt_<attribute>`` / ``decrypt_<attribute>`` helper for ``method_name``."""
        return cls.attr_encrypted_registry().router.route(cls, method_name)

    # Instance-scoped codec

    def encrypt(self, attribute, value):
        """Encrypt ``value`` for ``attribute`` with options evaluated against this instance."""
        spec = type(self).encrypted_attribute(attribute)
        return encrypt_value(spec.name, value, resolve(spec, self))

    def decrypt(self, attribute, encrypted_value):
        """Decrypt ``encrypted_value`` for ``attribute`` with options evaluated against this instance."""
        spec = type(self).encrypted_attribute(attribute)
        return decrypt_value(spec.name, encrypted_value, resolve(spec, self))

    def attribute_present(self, attribute) -> bool:
        """True if the decrypted ``attribute`` is not blank."""
        type(self).encrypted_attribute(attribute)
        return not _is_blank(getattr(self, str(attribute)))

    def assign_attributes(self, values: Mapping[str, Any]) -> None:
        """
        Bulk-assign ``values``.

        Plain attributes are set first so encrypted attributes see them when
        their options are evaluated.
        """
        if not values:
            return
        cls = type(self)
        encrypted = {name: value for name, value in values.items() if cls.is_attr_encrypted(name)}
        for name, value in values.items():
            if name not in encrypted:
                setattr(self, name, value)
        for name, value in encrypted.items():
            setattr(self, name, value)

    def clear_encrypted_cache(self) -> None:
        """Forget cached plaintext so the next read decrypts again."""
        self.__dict__.pop(CACHE_ATTR, None)

    def _attr_encrypted_plaintext(self) -> Dict[str, Any]:
        return self.__dict__.setdefault(CACHE_ATTR, {})
