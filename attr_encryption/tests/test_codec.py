"""
Tests for the single-value encrypt/decrypt pipeline.
"""

import pickle
import string
from unittest.mock import Mock

import pytest

from attr_encryption.backends import AESEncryptor
from attr_encryption.codec import decrypt_value, encrypt_value, is_absent
from attr_encryption.exceptions import DecryptionError, EncryptionConfigurationError
from attr_encryption.options import resolve
from attr_encryption.registry import FieldRegistry

KEY = 'codec-test-key'


def resolved(**options):
    spec = FieldRegistry().register(['secret'], options)[0]
    return resolve(spec)


def roundtrip(value, **options):
    options.setdefault('key', KEY)
    resolved_options = resolved(**options)
    encrypted = encrypt_value('secret', value, resolved_options)
    return encrypted, decrypt_value('secret', encrypted, resolved_options)


class ReversingCipher:
    """Toy cipher exposing non-default method names."""

    def scramble(self, value, key, **options):
        return bytes(reversed(value))

    def unscramble(self, value, key, **options):
        return bytes(reversed(value))


@pytest.mark.parametrize('value', [
    'a',
    'hello world',
    'x' * 1000,
    'naïve café',
    'Unicode: 你好 🌍',
    'line\nbreaks\tand tabs',
])
def test_string_roundtrip(value):
    encrypted, decrypted = roundtrip(value)
    assert isinstance(encrypted, bytes)
    assert encrypted != value.encode('utf-8')
    assert decrypted == value


def test_non_string_values_come_back_as_text():
    _, decrypted = roundtrip(42)
    assert decrypted == '42'


@pytest.mark.parametrize('encode', [False, 'm', 'H*'])
def test_binary_plaintext_roundtrip(encode):
    value = b'\xff\x00\xfe\x80'
    encrypted, decrypted = roundtrip(value, encode=encode)
    assert encrypted != value
    assert decrypted == value


def test_text_bytes_come_back_as_text():
    _, decrypted = roundtrip('héllo'.encode('utf-8'))
    assert decrypted == 'héllo'


def test_single_mode_is_deterministic():
    options = resolved(key=KEY)
    assert encrypt_value('secret', 'same', options) == encrypt_value('secret', 'same', options)


def test_call_site_iv_changes_ciphertext():
    spec = FieldRegistry().register(['secret'], {'key': KEY})[0]
    plain = resolve(spec)
    with_iv = resolve(spec, None, {'iv': b'\x01' * 16, 'salt': 'abc'})

    encrypted = encrypt_value('secret', 'value', with_iv)
    assert encrypted != encrypt_value('secret', 'value', plain)
    assert decrypt_value('secret', encrypted, with_iv) == 'value'


@pytest.mark.parametrize('value', [None, '', b''])
def test_absent_values_pass_through(value):
    options = resolved(key=KEY, encode=True)
    assert encrypt_value('secret', value, options) is value
    assert decrypt_value('secret', value, options) is value


def test_is_absent():
    assert is_absent(None)
    assert is_absent('')
    assert not is_absent(' ')
    assert not is_absent(0)


@pytest.mark.parametrize('gate', [{'if': False}, {'unless': True}, {'if': 0}, {'unless': 'yes'}])
def test_disabled_values_skip_the_cipher(gate):
    encryptor = Mock(wraps=AESEncryptor())
    options = resolved(key=KEY, encryptor=encryptor, **gate)

    assert encrypt_value('secret', 'plain', options) == 'plain'
    assert decrypt_value('secret', 'plain', options) == 'plain'
    encryptor.encrypt.assert_not_called()
    encryptor.decrypt.assert_not_called()


def test_cipher_receives_pass_through_options():
    encryptor = Mock(wraps=AESEncryptor())
    options = resolved(key=KEY, encryptor=encryptor, hmac_iterations=3, marshal=True)

    encrypt_value('secret', {'a': 1}, options)

    kwargs = encryptor.encrypt.call_args.kwargs
    assert kwargs['key'] == KEY
    assert kwargs['hmac_iterations'] == 3
    assert kwargs['value'] == b'{"a": 1}'
    assert 'marshal' not in kwargs
    assert 'encode' not in kwargs


def test_custom_cipher_method_names():
    options = resolved(
        key=KEY,
        encryptor=ReversingCipher(),
        encrypt_method='scramble',
        decrypt_method='unscramble',
    )

    assert encrypt_value('secret', 'hello', options) == b'olleh'
    assert decrypt_value('secret', b'olleh', options) == 'hello'


def test_marshal_roundtrip_with_default_json_marshaler():
    value = {'theme': 'dark', 'tags': ['a', 'b'], 'count': 2}
    _, decrypted = roundtrip(value, marshal=True)
    assert decrypted == value


def test_marshal_with_pickle():
    value = {'ids': {1, 2, 3}, 'pair': (1, 'b')}
    _, decrypted = roundtrip(
        value, marshal=True, marshaler=pickle, dump_method='dumps', load_method='loads'
    )
    assert decrypted == value


def test_marshaler_is_ignored_without_marshal():
    marshaler = Mock()
    _, decrypted = roundtrip('text', marshaler=marshaler)

    assert decrypted == 'text'
    marshaler.dump.assert_not_called()


@pytest.mark.parametrize('fmt', ['m', 'm0', 'H*'])
def test_transport_formats(fmt):
    encrypted, decrypted = roundtrip('hello', encode=fmt)
    assert isinstance(encrypted, str)
    assert decrypted == 'hello'


def test_mime_base64_ends_with_newline():
    encrypted, _ = roundtrip('hello', encode=True)
    assert encrypted.endswith('\n')


def test_strict_base64_has_no_newline():
    encrypted, _ = roundtrip('hello', encode='m0')
    assert '\n' not in encrypted


def test_hex_output():
    encrypted, _ = roundtrip('hello', encode='H*')
    assert set(encrypted) <= set(string.hexdigits.lower())


def test_default_encoding_is_used_for_encode_true():
    encrypted, decrypted = roundtrip('hello', encode=True, default_encoding='H*')
    assert set(encrypted) <= set(string.hexdigits.lower())
    assert decrypted == 'hello'


def test_unknown_transport_encoding_raises():
    with pytest.raises(EncryptionConfigurationError):
        roundtrip('hello', encode='base32')


def test_malformed_transport_text_raises_decryption_error():
    options = resolved(key=KEY, encode='m0')
    with pytest.raises(DecryptionError):
        decrypt_value('secret', '!!not base64!!', options)
