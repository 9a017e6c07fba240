"""
Cipher backend implementations.

A backend is any object with ``encrypt(**params)`` and ``decrypt(**params)``
methods accepting at least ``value``, ``key``, ``iv``, ``salt`` and
``algorithm`` keyword arguments and returning bytes.
"""

import functools
import logging
import re
from typing import Optional, Tuple, Union

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .conf import get_default_algorithm, get_kdf_iterations
from .exceptions import DecryptionError, EncryptionConfigurationError, EncryptionError

logger = logging.getLogger(__name__)

ALGORITHM_PATTERN = re.compile(r'^aes-(128|192|256)-(cbc|gcm)$')

BLOCK_SIZE = 128
GCM_IV_SIZE = 12
GCM_TAG_SIZE = 16


def parse_algorithm(algorithm: Optional[str]) -> Tuple[int, str]:
    """
    Split an algorithm name such as ``aes-256-cbc`` into key size and mode.

    Raises:
        EncryptionConfigurationError: If the algorithm is not supported
    """
    name = (algorithm or get_default_algorithm()).lower()
    match = ALGORITHM_PATTERN.match(name)
    if not match:
        raise EncryptionConfigurationError(f"Unsupported algorithm: {algorithm}")
    return int(match.group(1)) // 8, match.group(2)


def iv_length(algorithm: Optional[str] = None) -> int:
    """Return the IV size in bytes expected by ``algorithm``."""
    _, mode = parse_algorithm(algorithm)
    return GCM_IV_SIZE if mode == 'gcm' else BLOCK_SIZE // 8


# Holds key secrets and derived keys in memory until reset_encryption_backend() clears it.
KEY_CACHE_SIZE = 32


@functools.lru_cache(maxsize=KEY_CACHE_SIZE)
def _derive(secret: bytes, salt: bytes, length: int, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        iterations=iterations,
        backend=default_backend()
    )
    return kdf.derive(secret)


def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode('utf-8') if isinstance(value, str) else bytes(value)


class AESEncryptor:
    """
    AES backend in CBC or GCM mode.

    With an explicit IV the cipher key is derived from ``key`` and ``salt``
    with PBKDF2-HMAC-SHA256. Without one, both key and IV are derived from
    ``key`` and the fixed default salt, so every value encrypted under the
    same key shares one IV.
    """

    DEFAULT_SALT = b'attr_encryption.default-salt'

    def __init__(self, iterations: Optional[int] = None):
        self._iterations = iterations

    @property
    def iterations(self) -> int:
        return self._iterations or get_kdf_iterations()

    def _cipher_material(self, key, iv, salt, algorithm) -> Tuple[bytes, bytes, str]:
        if key is None:
            raise EncryptionConfigurationError("An encryption key is required")

        key_size, mode = parse_algorithm(algorithm)
        salt_bytes = _to_bytes(salt) if salt else self.DEFAULT_SALT
        secret = _to_bytes(key)

        if iv is None:
            size = GCM_IV_SIZE if mode == 'gcm' else BLOCK_SIZE // 8
            material = _derive(secret, salt_bytes, key_size + size, self.iterations)
            return material[:key_size], material[key_size:], mode

        return _derive(secret, salt_bytes, key_size, self.iterations), _to_bytes(iv), mode

    def encrypt(self, value, key=None, iv=None, salt=None, algorithm=None, **options) -> bytes:
        """
        Encrypt ``value`` bytes.

        Returns:
            Raw ciphertext; GCM output carries the 16-byte tag at the end

        Raises:
            EncryptionError: If encryption fails
        """
        cipher_key, cipher_iv, mode = self._cipher_material(key, iv, salt, algorithm)
        try:
            data = _to_bytes(value)
            if mode == 'gcm':
                encryptor = Cipher(
                    algorithms.AES(cipher_key), modes.GCM(cipher_iv), backend=default_backend()
                ).encryptor()
                return encryptor.update(data) + encryptor.finalize() + encryptor.tag

            padder = padding.PKCS7(BLOCK_SIZE).padder()
            padded = padder.update(data) + padder.finalize()
            encryptor = Cipher(
                algorithms.AES(cipher_key), modes.CBC(cipher_iv), backend=default_backend()
            ).encryptor()
            return encryptor.update(padded) + encryptor.finalize()

        except Exception as e:
            logger.error(f"Encryption failed: {str(e)}")
            raise EncryptionError(f"Failed to encrypt data: {str(e)}") from e

    def decrypt(self, value, key=None, iv=None, salt=None, algorithm=None, **options) -> bytes:
        """
        Decrypt ciphertext produced by :meth:`encrypt` with the same parameters.

        Raises:
            DecryptionError: If decryption fails
        """
        cipher_key, cipher_iv, mode = self._cipher_material(key, iv, salt, algorithm)
        try:
            data = _to_bytes(value)
            if mode == 'gcm':
                ciphertext, tag = data[:-GCM_TAG_SIZE], data[-GCM_TAG_SIZE:]
                decryptor = Cipher(
                    algorithms.AES(cipher_key), modes.GCM(cipher_iv, tag), backend=default_backend()
                ).decryptor()
                return decryptor.update(ciphertext) + decryptor.finalize()

            decryptor = Cipher(
                algorithms.AES(cipher_key), modes.CBC(cipher_iv), backend=default_backend()
            ).decryptor()
            padded = decryptor.update(data) + decryptor.finalize()
            unpadder = padding.PKCS7(BLOCK_SIZE).unpadder()
            return unpadder.update(padded) + unpadder.finalize()

        except Exception as e:
            logger.error(f"Decryption failed: {str(e)}")
            raise DecryptionError(f"Failed to decrypt data: {str(e)}") from e


# Singleton instance management
_backend_instance = None


def get_encryption_backend() -> AESEncryptor:
    """
    Get the shared default cipher backend.

    Returns:
        Default :class:`AESEncryptor`
    """
    global _backend_instance

    if _backend_instance is None:
        _backend_instance = AESEncryptor()

    return _backend_instance


def reset_encryption_backend():
    """
    Reset the backend instance (useful for testing).
    """
    global _backend_instance
    _backend_instance = None
    _derive.cache_clear()
