"""
Per-class registry of encrypted attributes.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from .dispatch import DispatchRouter
from .exceptions import AttributeNotEncryptedError
from .options import (
    FromContext,
    Literal,
    Mode,
    OptionValue,
    default_options,
    merge_options,
    normalize_options,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    """
    Static configuration of one encrypted attribute.

    ``options`` holds the merged library, class and registration options.
    ``iv_attribute`` and ``salt_attribute`` are only set when the mode is
    per-attribute (or decided at runtime).
    """

    name: str
    attribute: str
    mode: Union[Mode, OptionValue]
    options: Mapping[str, Any]
    iv_attribute: Optional[str] = None
    salt_attribute: Optional[str] = None

    @classmethod
    def build(cls, name: str, options: Mapping[str, Any]) -> 'FieldSpec':
        options = dict(options)
        attribute = options.get('attribute') or '{}{}{}'.format(
            options.get('prefix', ''), name, options.get('suffix', '')
        )
        options['attribute'] = attribute
        mode = options.get('mode', Mode.SINGLE_IV_AND_SALT)

        iv_attribute = salt_attribute = None
        static = mode.value if isinstance(mode, Literal) else mode
        if static is Mode.PER_ATTRIBUTE_IV_AND_SALT or isinstance(mode, FromContext):
            iv_attribute = f'{attribute}_iv'
            salt_attribute = f'{attribute}_salt'

        return cls(
            name=name,
            attribute=attribute,
            mode=mode,
            options=MappingProxyType(options),
            iv_attribute=iv_attribute,
            salt_attribute=salt_attribute,
        )

    @property
    def storage_attributes(self) -> List[str]:
        return [name for name in (self.attribute, self.iv_attribute, self.salt_attribute) if name]

    @property
    def mode_name(self) -> str:
        """Mode value, or ``'dynamic'`` when the mode is decided per record."""
        mode = self.mode.value if isinstance(self.mode, Literal) else self.mode
        return mode.value if isinstance(mode, Mode) else 'dynamic'


class FieldRegistry:
    """
    Mapping of logical attribute name to :class:`FieldSpec` for one class.

    Subclasses work on a :meth:`copy`, so registrations never leak back to
    the parent or across siblings.
    """

    def __init__(self,
                 default_options: Optional[Mapping[str, Any]] = None,
                 fields: Optional[Mapping[str, FieldSpec]] = None,
                 router: Optional[DispatchRouter] = None):
        self._default_options = MappingProxyType(merge_options(default_options))
        self._fields: Dict[str, FieldSpec] = dict(fields or {})
        self.router = router or DispatchRouter()

    @property
    def default_options(self) -> Mapping[str, Any]:
        return self._default_options

    def configure(self, **options) -> None:
        """Layer ``options`` over the class defaults used by later registrations."""
        self._default_options = MappingProxyType(merge_options(self._default_options, options))

    def copy(self) -> 'FieldRegistry':
        return FieldRegistry(self._default_options, self._fields, self.router.copy())

    def register(self, names: Iterable[str], options: Optional[Mapping[str, Any]] = None) -> List[FieldSpec]:
        """
        Record a :class:`FieldSpec` for each name.

        Unknown option keys are kept and handed to the cipher.
        """
        names = [str(name) for name in names]
        if not names:
            return []

        merged = normalize_options(merge_options(default_options(), self._default_options, options))
        specs = []
        for name in names:
            spec = FieldSpec.build(name, merged)
            self._fields[name] = spec
            specs.append(spec)
            logger.debug(f"Registered encrypted attribute {name} stored in {spec.attribute}")
        return specs

    def lookup(self, name: str) -> FieldSpec:
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeNotEncryptedError(f"{name} is not an encrypted attribute")

    def is_encrypted(self, name: str) -> bool:
        return name in self._fields

    def names(self) -> List[str]:
        return list(self._fields)

    def specs(self) -> Dict[str, FieldSpec]:
        return dict(self._fields)

    def __contains__(self, name) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __bool__(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self):
        return f"<FieldRegistry {self.names()}>"
