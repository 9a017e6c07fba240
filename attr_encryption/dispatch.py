"""
Routing of ``encrypt_<attribute>`` / ``decrypt_<attribute>`` calls.

Each class keeps an explicit table of the helper names it answers to. The
helpers are installed as descriptors when an attribute is registered, so
unknown names fall through to the normal ``AttributeError``.
"""

import functools
from typing import Dict, Optional, Tuple

ENCRYPT = 'encrypt'
DECRYPT = 'decrypt'
DIRECTIONS = (ENCRYPT, DECRYPT)


def defined_on(cls, name: str) -> bool:
    """True if ``name`` is defined on ``cls`` or one of its bases."""
    return any(name in klass.__dict__ for klass in cls.__mro__)


class CodecDispatcher:
    """
    Bound on the class as ``encrypt_<attribute>`` or ``decrypt_<attribute>``.

    Accessed on the class it forwards to ``encrypt_attribute`` /
    ``decrypt_attribute``; on an instance it forwards to the
    instance-scoped ``encrypt`` / ``decrypt``.
    """

    def __init__(self, direction: str, attribute: str):
        self.direction = direction
        self.attribute = attribute

    def __get__(self, instance, owner=None):
        if instance is None:
            return functools.partial(getattr(owner, f'{self.direction}_attribute'), self.attribute)
        return functools.partial(getattr(instance, self.direction), self.attribute)

    def __repr__(self):
        return f"<CodecDispatcher {self.direction}_{self.attribute}>"


class DispatchRouter:
    """Per-class table from helper name to ``(direction, attribute)``."""

    def __init__(self, table: Optional[Dict[str, Tuple[str, str]]] = None):
        self._table = dict(table or {})

    def copy(self) -> 'DispatchRouter':
        return DispatchRouter(self._table)

    def bind(self, cls, attribute: str) -> None:
        for direction in DIRECTIONS:
            method_name = f'{direction}_{attribute}'
            self._table[method_name] = (direction, attribute)
            if not defined_on(cls, method_name):
                setattr(cls, method_name, CodecDispatcher(direction, attribute))

    def lookup(self, method_name: str) -> Optional[Tuple[str, str]]:
        return self._table.get(method_name)

    def route(self, target, method_name: str):
        """
        Return the callable ``method_name`` stands for on ``target`` (class or instance).

        Raises:
            AttributeError: If ``method_name`` is not an encrypted-attribute helper
        """
        entry = self.lookup(method_name)
        if entry is None:
            owner = target if isinstance(target, type) else type(target)
            raise AttributeError(f"type object {owner.__name__!r} has no attribute {method_name!r}")
        return CodecDispatcher(*entry).__get__(
            None if isinstance(target, type) else target,
            target if isinstance(target, type) else type(target)
        )

    def __contains__(self, method_name: str) -> bool:
        return method_name in self._table

    def __len__(self) -> int:
        return len(self._table)
