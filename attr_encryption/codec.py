"""
Encrypt/decrypt pipeline for a single attribute value.

Encrypt: serialize, cipher, transport-encode. Decrypt runs the exact
inverse. ``None`` and empty values, and values whose ``if`` / ``unless``
gating says not to encrypt, pass through untouched.
"""

import binascii
import logging
from typing import Any

from .encoding import default_text_encoding, transport_decode, transport_encode
from .exceptions import DecryptionError

logger = logging.getLogger(__name__)


def is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, (str, bytes)) and len(value) == 0)


def serialize(value: Any, options) -> bytes:
    if options.marshal:
        data = options.dump_callable(value)
    elif isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    else:
        data = str(value)
    if isinstance(data, str):
        data = data.encode(default_text_encoding())
    return data


def deserialize(data: bytes, options) -> Any:
    """Inverse of :func:`serialize`; bytes that are not valid text come back as bytes."""
    if options.marshal:
        return options.load_callable(data)
    if isinstance(data, str):
        return data
    try:
        return data.decode(default_text_encoding())
    except UnicodeDecodeError:
        # Binary plaintext that was encrypted from bytes
        return data


def encrypt_value(attribute: str, value: Any, options) -> Any:
    """
    Encrypt ``value`` for ``attribute`` with resolved ``options``.

    Returns:
        Transport-encoded text when ``options.encode`` is set, raw cipher
        bytes otherwise, or ``value`` itself when it passes through
    """
    if not options.enabled or is_absent(value):
        return value

    encrypted = options.encrypt_callable(**options.cipher_params(serialize(value, options)))
    logger.debug(f"Encrypted attribute {attribute}")

    if options.encode:
        return transport_encode(encrypted, options.encode)
    return encrypted


def decrypt_value(attribute: str, value: Any, options) -> Any:
    """
    Decrypt ``value`` for ``attribute`` with resolved ``options``.

    Raises:
        DecryptionError: If the transport encoding or the cipher rejects the value
    """
    if not options.enabled or is_absent(value):
        return value

    if options.encode:
        try:
            value = transport_decode(value, options.encode)
        except (binascii.Error, ValueError) as e:
            logger.error(f"Transport decoding failed for {attribute}: {str(e)}")
            raise DecryptionError(f"Failed to decode {attribute}: {str(e)}") from e

    decrypted = options.decrypt_callable(**options.cipher_params(value))
    logger.debug(f"Decrypted attribute {attribute}")
    return deserialize(decrypted, options)
