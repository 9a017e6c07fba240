"""
Custom exceptions for the attribute encryption framework.
"""


class EncryptionError(Exception):
    """Base exception for encryption-related errors."""
    pass


class DecryptionError(EncryptionError):
    """Raised when decryption fails."""
    pass


class AttributeNotEncryptedError(EncryptionError, LookupError):
    """Raised when an attribute is not registered as encrypted."""
    pass


class EncryptionConfigurationError(EncryptionError):
    """Raised when encryption is misconfigured."""
    pass


class IVGenerationError(EncryptionConfigurationError):
    """Raised when an IV cannot be generated for the configured algorithm."""
    pass
