"""
This submodule contains the types returned by single-flag evaluations.
"""

from enum import Enum
from typing import Any, Mapping, Optional


class Reason:
    """
    Canonical reasons for why a flag evaluated the way it did.
    """
    STATIC = 'STATIC'
    DEFAULT = 'DEFAULT'
    TARGETING_MATCH = 'TARGETING_MATCH'
    SPLIT = 'SPLIT'
    CACHED = 'CACHED'
    DISABLED = 'DISABLED'
    ERROR = 'ERROR'
    UNKNOWN = 'UNKNOWN'


_KNOWN_REASONS = frozenset([Reason.STATIC, Reason.DEFAULT, Reason.TARGETING_MATCH, Reason.SPLIT, Reason.CACHED, Reason.DISABLED, Reason.ERROR])


def map_reason(reason: Optional[str]) -> str:
    """
    Maps the free-form reason sent by the service to one of the :class:`Reason` values,
    ignoring case. Empty and unrecognized reasons become ``UNKNOWN``.
    """
    if not reason:
        return Reason.UNKNOWN
    upper = reason.upper()
    return upper if upper in _KNOWN_REASONS else Reason.UNKNOWN


class ErrorKind(Enum):
    """
    Why an evaluation fell back to the caller's default value.
    """
    PROVIDER_NOT_READY = 'PROVIDER_NOT_READY'
    PARSE_ERROR = 'PARSE_ERROR'
    TYPE_MISMATCH = 'TYPE_MISMATCH'
    GENERAL = 'GENERAL'


class ProviderMetadata:
    __slots__ = ['__name']

    def __init__(self, name: str):
        self.__name = name

    @property
    def name(self) -> str:
        return self.__name

    def __eq__(self, other) -> bool:
        return isinstance(other, ProviderMetadata) and self.__name == other.__name

    def __repr__(self) -> str:
        return "ProviderMetadata(name=%r)" % self.__name


class ResolutionDetails:
    """
    The result of resolving one flag: the value, and how it was arrived at.

    When ``error_kind`` is set, ``value`` is the default the caller supplied and ``reason`` is
    ``ERROR``.
    """

    __slots__ = ['__flag_key', '__value', '__variant', '__reason', '__raw_reason', '__error_kind', '__error_message', '__flag_metadata']

    def __init__(
        self,
        flag_key: str,
        value: Any,
        reason: str,
        variant: Optional[str] = None,
        error_kind: Optional[ErrorKind] = None,
        error_message: Optional[str] = None,
        flag_metadata: Optional[Mapping[str, str]] = None,
        raw_reason: Optional[str] = None,
    ):
        self.__flag_key = flag_key
        self.__value = value
        self.__variant = variant
        self.__reason = reason
        self.__raw_reason = raw_reason
        self.__error_kind = error_kind
        self.__error_message = error_message
        self.__flag_metadata = dict(flag_metadata) if flag_metadata is not None else None

    @property
    def flag_key(self) -> str:
        return self.__flag_key

    @property
    def value(self) -> Any:
        return self.__value

    @property
    def variant(self) -> Optional[str]:
        return self.__variant

    @property
    def reason(self) -> str:
        """One of the :class:`Reason` values."""
        return self.__reason

    @property
    def raw_reason(self) -> Optional[str]:
        """
        The reason string the service sent, when it was not empty and did not match any
        :class:`Reason` value.
        """
        return self.__raw_reason

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.__error_kind

    @property
    def error_message(self) -> Optional[str]:
        return self.__error_message

    @property
    def flag_metadata(self) -> Optional[Mapping[str, str]]:
        return self.__flag_metadata

    def is_error(self) -> bool:
        return self.__error_kind is not None

    def __eq__(self, other) -> bool:
        return isinstance(other, ResolutionDetails) and self.__key() == other.__key()

    def __ne__(self, other) -> bool:
        return not self.__eq__(other)

    def __key(self):
        return (self.__flag_key, self.__value, self.__variant, self.__reason, self.__raw_reason, self.__error_kind, self.__error_message, self.__flag_metadata)

    def __repr__(self) -> str:
        return "ResolutionDetails(flag_key=%r, value=%r, variant=%r, reason=%r, error_kind=%r, error_message=%r)" % (
            self.__flag_key, self.__value, self.__variant, self.__reason, self.__error_kind, self.__error_message)
