"""
Settings access for attribute encryption.

Values are read from Django settings when they are configured, so the
package also works on plain Python objects outside a Django project.
"""

from typing import Any, Dict

from django.conf import settings

DEFAULT_ALGORITHM = 'aes-256-cbc'
DEFAULT_KDF_ITERATIONS = 2000


def get_setting(name: str, default: Any = None) -> Any:
    """Return a Django setting, or ``default`` when settings are not configured."""
    if not settings.configured:
        return default
    return getattr(settings, name, default)


def get_default_algorithm() -> str:
    return get_setting('ATTR_ENCRYPTED_DEFAULT_ALGORITHM', DEFAULT_ALGORITHM)


def get_kdf_iterations() -> int:
    return int(get_setting('ATTR_ENCRYPTED_KDF_ITERATIONS', DEFAULT_KDF_ITERATIONS))


def get_project_default_options() -> Dict[str, Any]:
    """Project-wide option overrides from ``ATTR_ENCRYPTED_DEFAULT_OPTIONS``."""
    return dict(get_setting('ATTR_ENCRYPTED_DEFAULT_OPTIONS', None) or {})
