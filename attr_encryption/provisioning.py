"""
Per-instance IV and salt provisioning for ``per_attribute_iv_and_salt`` mode.

Both values are generated lazily on first use, stored on the instance next
to the encrypted value and reused for every later call.
"""

import logging
import os
import secrets
from typing import Any, Optional

from .backends import iv_length
from .encoding import DEFAULT_TRANSPORT_ENCODING, transport_decode, transport_encode
from .exceptions import EncryptionConfigurationError, IVGenerationError

logger = logging.getLogger(__name__)

SALT_LENGTH = 16


def generate_salt() -> str:
    """Return a random hexadecimal salt of ``SALT_LENGTH`` characters."""
    return secrets.token_hex(SALT_LENGTH // 2)


def ensure_iv(instance: Any, spec, algorithm: Optional[str] = None) -> bytes:
    """
    Return the IV stored on ``instance`` for ``spec``, generating it first if absent.

    The IV is stored base64 encoded and returned as raw bytes.

    Raises:
        IVGenerationError: If no IV size is known for ``algorithm``
    """
    if not spec.iv_attribute:
        raise EncryptionConfigurationError(f"{spec.name} has no IV attribute")

    encoded = getattr(instance, spec.iv_attribute, None)
    if not encoded:
        try:
            size = iv_length(algorithm)
        except EncryptionConfigurationError as e:
            logger.error(f"IV generation failed for {spec.name}: {str(e)}")
            raise IVGenerationError(f"Cannot generate an IV for {spec.name}: {str(e)}") from e

        encoded = transport_encode(os.urandom(size), DEFAULT_TRANSPORT_ENCODING)
        setattr(instance, spec.iv_attribute, encoded)
        logger.debug(f"Generated {size}-byte IV for {spec.name}")

    return transport_decode(encoded, DEFAULT_TRANSPORT_ENCODING)


def ensure_salt(instance: Any, spec) -> str:
    """Return the salt stored on ``instance`` for ``spec``, generating it first if absent."""
    if not spec.salt_attribute:
        raise EncryptionConfigurationError(f"{spec.name} has no salt attribute")

    salt = getattr(instance, spec.salt_attribute, None)
    if not salt:
        salt = generate_salt()
        setattr(instance, spec.salt_attribute, salt)
    return salt
