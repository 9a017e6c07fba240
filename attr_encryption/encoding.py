"""
Transport encodings for binary cipher output.

Format names follow the directives accepted by the ``encode`` and
``default_encoding`` options: ``m`` is MIME base64 with line breaks,
``m0`` is strict base64 and ``H*`` is lowercase hex.
"""

import base64
import binascii
import sys
from typing import Union

from .exceptions import EncryptionConfigurationError

TRANSPORT_ENCODINGS = {
    'm': (base64.encodebytes, base64.decodebytes),
    'm0': (base64.b64encode, lambda data: base64.b64decode(data, validate=True)),
    'H*': (binascii.hexlify, binascii.unhexlify),
}

DEFAULT_TRANSPORT_ENCODING = 'm'


def _lookup(fmt: str):
    try:
        return TRANSPORT_ENCODINGS[fmt]
    except (KeyError, TypeError):
        raise EncryptionConfigurationError(f"Unknown transport encoding: {fmt!r}")


def transport_encode(data: bytes, fmt: str = DEFAULT_TRANSPORT_ENCODING) -> str:
    encoder, _ = _lookup(fmt)
    return encoder(data).decode('ascii')


def transport_decode(text: Union[str, bytes], fmt: str = DEFAULT_TRANSPORT_ENCODING) -> bytes:
    _, decoder = _lookup(fmt)
    if isinstance(text, str):
        text = text.encode('ascii')
    return decoder(text)


def default_text_encoding() -> str:
    """Text encoding used for non-marshaled plaintext."""
    return sys.getdefaultencoding()
