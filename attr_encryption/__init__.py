"""
Transparent attribute-level encryption for Python objects and Django models.

Declared attributes are encrypted on write and decrypted on read, with keys,
IVs, salts, encodings and marshaling resolved per attribute and per call.
"""

from .attributes import AttrEncrypted, EncryptedAttribute, StorageAttribute
from .backends import AESEncryptor, get_encryption_backend, reset_encryption_backend
from .exceptions import (
    AttributeNotEncryptedError,
    DecryptionError,
    EncryptionConfigurationError,
    EncryptionError,
    IVGenerationError,
)
from .options import (
    DEFAULT_OPTIONS,
    FromContext,
    Literal,
    Mode,
    ResolvedOptions,
    from_callable,
    from_method,
    resolve,
)
from .registry import FieldRegistry, FieldSpec
from .utils import JSONMarshaler

__all__ = [
    # Attributes
    'AttrEncrypted',
    'EncryptedAttribute',
    'StorageAttribute',

    # Options
    'DEFAULT_OPTIONS',
    'FromContext',
    'Literal',
    'Mode',
    'ResolvedOptions',
    'from_callable',
    'from_method',
    'resolve',

    # Registry
    'FieldRegistry',
    'FieldSpec',

    # Backends
    'AESEncryptor',
    'JSONMarshaler',
    'get_encryption_backend',
    'reset_encryption_backend',

    # Exceptions
    'AttributeNotEncryptedError',
    'DecryptionError',
    'EncryptionConfigurationError',
    'EncryptionError',
    'IVGenerationError',
]

# Version info
__version__ = '1.0.0'
