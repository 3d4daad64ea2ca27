"""
This submodule implements the :class:`EvaluationContext` passed to single-flag evaluations.
"""

from typing import Any, Dict, Mapping, Optional

SCOPE_ATTRIBUTE = 'scope'


class EvaluationContext:
    """
    The attributes describing who or what a flag is being evaluated for.

    The Flare service needs a scope for every evaluation. It is taken from the ``scope``
    attribute; there is no implicit default at this level.

    ::

        context = EvaluationContext(targeting_key='user-123', attributes={'scope': 'production'})
    """

    __slots__ = ['__targeting_key', '__attributes']

    def __init__(self, targeting_key: Optional[str] = None, attributes: Optional[Mapping[str, Any]] = None):
        self.__targeting_key = targeting_key
        self.__attributes = dict(attributes or {})  # type: Dict[str, Any]

    @classmethod
    def with_scope(cls, scope: str, targeting_key: Optional[str] = None) -> 'EvaluationContext':
        return cls(targeting_key, {SCOPE_ATTRIBUTE: scope})

    @property
    def targeting_key(self) -> Optional[str]:
        return self.__targeting_key

    @property
    def attributes(self) -> Dict[str, Any]:
        return self.__attributes.copy()

    def get(self, name: str, default: Any = None) -> Any:
        return self.__attributes.get(name, default)

    @property
    def scope(self) -> Optional[str]:
        """
        The scope named by the ``scope`` attribute, or None if it is absent, empty, or not a string.
        """
        value = self.__attributes.get(SCOPE_ATTRIBUTE)
        if isinstance(value, str) and value != '':
            return value
        return None

    def merge(self, other: Optional['EvaluationContext']) -> 'EvaluationContext':
        """
        Returns a new context with ``other``'s targeting key and attributes layered over this one's.
        """
        if other is None:
            return self
        attributes = self.__attributes.copy()
        attributes.update(other.__attributes)
        targeting_key = other.targeting_key if other.targeting_key is not None else self.targeting_key
        return EvaluationContext(targeting_key, attributes)

    def __eq__(self, other) -> bool:
        return isinstance(other, EvaluationContext) and self.__targeting_key == other.__targeting_key and self.__attributes == other.__attributes

    def __ne__(self, other) -> bool:
        return not self.__eq__(other)

    def __repr__(self) -> str:
        return "EvaluationContext(targeting_key=%r, attributes=%r)" % (self.__targeting_key, self.__attributes)
