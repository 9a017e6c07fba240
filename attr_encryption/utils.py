"""
Utility functions for the attribute encryption framework.
"""

import base64
import json
import logging
import os
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder

logger = logging.getLogger(__name__)


class EncryptionJSONEncoder(DjangoJSONEncoder):
    """Extended JSON encoder for marshaled values that handles more types."""

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        elif isinstance(o, (datetime, date)):
            return o.isoformat()
        elif isinstance(o, (set, frozenset)):
            return sorted(o)
        return super().default(o)


class JSONMarshaler:
    """
    Default marshaler for ``marshal=True`` attributes.

    Serializes structured values to UTF-8 JSON bytes and back. Use
    ``marshaler=pickle`` with ``dump_method='dumps'`` and
    ``load_method='loads'`` for arbitrary Python objects.
    """

    encoder_class = EncryptionJSONEncoder

    def dump(self, value: Any) -> bytes:
        return json.dumps(value, cls=self.encoder_class, sort_keys=True).encode('utf-8')

    def load(self, data: bytes) -> Any:
        if isinstance(data, bytes):
            data = data.decode('utf-8')
        return json.loads(data)


def generate_encryption_key() -> str:
    """
    Generate a new encryption key.

    Returns:
        Base64-encoded 256-bit key
    """
    key_bytes = os.urandom(32)
    return base64.b64encode(key_bytes).decode('utf-8')


def get_encrypted_models():
    """
    Find installed Django models that declare encrypted attributes.

    Returns:
        List of ``(model, {name: FieldSpec})`` tuples
    """
    from django.apps import apps

    from .attributes import AttrEncrypted

    found = []
    for model in apps.get_models():
        if issubclass(model, AttrEncrypted):
            specs = model.encrypted_attributes()
            if specs:
                found.append((model, specs))
    return found


def audit_encryption_usage():
    """
    Audit which models and attributes are using encryption.

    Returns:
        Dict with encryption usage statistics
    """
    stats = {
        'encrypted_models': 0,
        'encrypted_attributes': 0,
        'attributes_by_mode': {},
        'models': []
    }

    for model, specs in get_encrypted_models():
        model_info = {
            'app_label': model._meta.app_label,
            'model_name': model.__name__,
            'encrypted_attributes': []
        }
        for name, spec in specs.items():
            mode = spec.mode_name
            stats['attributes_by_mode'][mode] = stats['attributes_by_mode'].get(mode, 0) + 1
            model_info['encrypted_attributes'].append({
                'name': name,
                'attribute': spec.attribute,
                'mode': mode,
            })
        stats['encrypted_models'] += 1
        stats['encrypted_attributes'] += len(specs)
        stats['models'].append(model_info)

    logger.debug(f"Audited {stats['encrypted_models']} models with encrypted attributes")
    return stats


def validate_encryption_config():
    """
    Validate that attribute encryption is properly configured.

    Raises:
        EncryptionConfigurationError: If configuration is invalid
    """
    from .backends import parse_algorithm
    from .conf import get_default_algorithm, get_kdf_iterations, get_project_default_options
    from .encoding import TRANSPORT_ENCODINGS
    from .exceptions import EncryptionConfigurationError
    from .options import Mode, normalize_options

    parse_algorithm(get_default_algorithm())

    if get_kdf_iterations() < 1:
        raise EncryptionConfigurationError(
            "ATTR_ENCRYPTED_KDF_ITERATIONS must be a positive integer"
        )

    try:
        options = normalize_options(get_project_default_options())
    except ValueError as e:
        raise EncryptionConfigurationError(f"Invalid ATTR_ENCRYPTED_DEFAULT_OPTIONS: {e}")

    encoding = options.get('encode') or options.get('default_encoding')
    if encoding and encoding not in TRANSPORT_ENCODINGS:
        raise EncryptionConfigurationError(f"Unknown transport encoding: {encoding!r}")

    if 'mode' in options and not isinstance(options['mode'], Mode):
        raise EncryptionConfigurationError(f"Invalid mode: {options['mode']!r}")
