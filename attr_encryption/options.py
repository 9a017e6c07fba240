"""
Option resolution for encrypted attributes.

Options are layered (library defaults, class defaults, registration
options, call-site options) and then evaluated against a context. A value
is dynamic only when it is wrapped in :class:`FromContext` (see
:func:`from_method` and :func:`from_callable`); anything else is a literal.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from .backends import get_encryption_backend
from .conf import get_project_default_options
from .encoding import DEFAULT_TRANSPORT_ENCODING
from .provisioning import ensure_iv, ensure_salt
from .utils import JSONMarshaler

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    """Where the IV and salt of an encrypted attribute come from."""

    SINGLE_IV_AND_SALT = 'single_iv_and_salt'
    PER_ATTRIBUTE_IV_AND_SALT = 'per_attribute_iv_and_salt'


class OptionValue:
    """Base for tagged option values."""

    def resolve(self, context: Any) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class Literal(OptionValue):
    value: Any

    def resolve(self, context: Any) -> Any:
        return self.value


@dataclass(frozen=True)
class FromContext(OptionValue):
    """Option computed from the instance (or class) it is resolved for."""

    function: Callable[[Any], Any]
    label: str = ''

    def resolve(self, context: Any) -> Any:
        return self.function(context)


def from_method(name: str) -> FromContext:
    """
    Resolve to ``context.<name>()``, or to the attribute value when it is
    not callable.
    """
    def call(context):
        member = getattr(context, name)
        return member() if callable(member) else member

    return FromContext(call, label=name)


def from_callable(function: Callable[[Any], Any]) -> FromContext:
    """Resolve to ``function(context)``."""
    return FromContext(function, label=getattr(function, '__name__', ''))


def evaluate(value: Any, context: Any) -> Any:
    if isinstance(value, OptionValue):
        return value.resolve(context)
    return value


DEFAULT_MARSHALER = JSONMarshaler()

DEFAULT_OPTIONS = MappingProxyType({
    'prefix': 'encrypted_',
    'suffix': '',
    'if': True,
    'unless': False,
    'encode': False,
    'default_encoding': DEFAULT_TRANSPORT_ENCODING,
    'marshal': False,
    'marshaler': DEFAULT_MARSHALER,
    'dump_method': 'dump',
    'load_method': 'load',
    'encryptor': None,
    'encrypt_method': 'encrypt',
    'decrypt_method': 'decrypt',
    'mode': Mode.SINGLE_IV_AND_SALT,
})

# Options consumed by the pipeline itself and never handed to the cipher.
CONTROL_OPTIONS = frozenset(DEFAULT_OPTIONS) | {'attribute'}
CIPHER_OPTIONS = ('key', 'iv', 'salt', 'algorithm')


def default_options() -> Dict[str, Any]:
    """Library defaults with the shared cipher backend and project settings applied."""
    options = dict(DEFAULT_OPTIONS)
    options['encryptor'] = get_encryption_backend()
    options.update(canonical_keys(get_project_default_options()))
    return options


def merge_options(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Shallow merge; later layers win.

    Only keys are canonicalized per layer. ``encode=True`` is kept as is so
    it picks up the ``default_encoding`` of the merged result when
    :func:`normalize_options` runs on it.
    """
    merged = {}
    for layer in layers:
        if layer:
            merged.update(canonical_keys(layer))
    return merged


def canonical_keys(options: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename ``if_`` to ``if`` and coerce literal ``mode`` strings to :class:`Mode`."""
    canonical = dict(options)
    if 'if_' in canonical:
        canonical['if'] = canonical.pop('if_')
    mode = canonical.get('mode')
    if isinstance(mode, str) and not isinstance(mode, Mode):
        canonical['mode'] = Mode(mode)
    return canonical


def normalize_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Canonicalize a fully merged option mapping.

    On top of :func:`canonical_keys`, ``encode=True`` becomes the
    ``default_encoding`` directive.
    """
    normalized = canonical_keys(options)
    if normalized.get('encode') is True:
        normalized['encode'] = normalized.get('default_encoding', DEFAULT_TRANSPORT_ENCODING)
    return normalized


@dataclass(frozen=True)
class ResolvedOptions:
    """Concrete parameters for one encrypt or decrypt call."""

    key: Any = None
    algorithm: Optional[str] = None
    iv: Optional[bytes] = None
    salt: Optional[str] = None
    encode: Optional[str] = None
    default_encoding: str = DEFAULT_TRANSPORT_ENCODING
    marshal: bool = False
    marshaler: Any = DEFAULT_MARSHALER
    dump_method: str = 'dump'
    load_method: str = 'load'
    encryptor: Any = None
    encrypt_method: str = 'encrypt'
    decrypt_method: str = 'decrypt'
    if_: Any = True
    unless: Any = False
    mode: Mode = Mode.SINGLE_IV_AND_SALT
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> 'ResolvedOptions':
        options = normalize_options(options)
        known = {
            name: options[name]
            for name in cls.__dataclass_fields__
            if name not in ('if_', 'extra') and name in options
        }
        if 'if' in options:
            known['if_'] = options['if']
        if not known.get('encode'):
            known['encode'] = None
        if known.get('encryptor') is None:
            known['encryptor'] = get_encryption_backend()
        extra = {
            name: value for name, value in options.items()
            if name not in CONTROL_OPTIONS and name not in CIPHER_OPTIONS
        }
        return cls(extra=MappingProxyType(extra), **known)

    @property
    def enabled(self) -> bool:
        return bool(self.if_) and not self.unless

    @property
    def encrypt_callable(self) -> Callable[..., bytes]:
        return getattr(self.encryptor, self.encrypt_method)

    @property
    def decrypt_callable(self) -> Callable[..., bytes]:
        return getattr(self.encryptor, self.decrypt_method)

    @property
    def dump_callable(self) -> Callable[[Any], bytes]:
        return getattr(self.marshaler, self.dump_method)

    @property
    def load_callable(self) -> Callable[[bytes], Any]:
        return getattr(self.marshaler, self.load_method)

    def cipher_params(self, value: Any) -> Dict[str, Any]:
        """Keyword arguments for the cipher: value, key material and pass-through options."""
        params = dict(self.extra)
        params['value'] = value
        params['key'] = self.key
        for name in ('iv', 'salt', 'algorithm'):
            if getattr(self, name) is not None:
                params[name] = getattr(self, name)
        return params


def _is_instance_context(context: Any) -> bool:
    return context is not None and not isinstance(context, type)


def resolve(spec, context: Any = None, call_options: Optional[Mapping[str, Any]] = None) -> ResolvedOptions:
    """
    Resolve the options of ``spec`` for one call.

    Args:
        spec: :class:`~attr_encryption.registry.FieldSpec` of the attribute
        context: Instance (or class) dynamic options are evaluated against
        call_options: Call-site overrides, applied last

    Returns:
        Fully evaluated :class:`ResolvedOptions`
    """
    call_options = canonical_keys(call_options or {})
    options = normalize_options(merge_options(spec.options, call_options))

    mode = Mode(evaluate(options.get('mode', Mode.SINGLE_IV_AND_SALT), context))
    options['mode'] = mode

    if mode is Mode.PER_ATTRIBUTE_IV_AND_SALT and _is_instance_context(context):
        algorithm = evaluate(options.get('algorithm'), context)
        if 'iv' not in call_options:
            options['iv'] = ensure_iv(context, spec, algorithm)
        if 'salt' not in call_options:
            options['salt'] = ensure_salt(context, spec)

    evaluated = {name: evaluate(value, context) for name, value in options.items()}
    logger.debug(f"Resolved options for {spec.name} in {mode.value} mode")
    return ResolvedOptions.from_mapping(evaluated)
