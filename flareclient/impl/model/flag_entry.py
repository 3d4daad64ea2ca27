import uuid
from datetime import datetime, timezone
from typing import Optional

import pyrfc3339

from flareclient.impl.model.entity import (opt_dict, opt_str, req_bool,
                                           req_str)


def parse_timestamp(value: str) -> datetime:
    try:
        return pyrfc3339.parse(value)
    except ValueError as e:
        raise ValueError('error in flag data: "%s" is not an RFC 3339 timestamp' % value) from e


def format_timestamp(value: datetime) -> str:
    """
    Formats a timestamp as RFC 3339 in UTC with microsecond precision, so that the strings of
    two timestamps sort the same way as the timestamps do.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return pyrfc3339.generate(value.astimezone(timezone.utc), microseconds=True)


class FlagMetadata:
    """
    Informational data the service attaches to an evaluation.
    """

    __slots__ = ['_scope_alias', '_scope_id', '_updated_at']

    def __init__(self, updated_at: datetime, scope_alias: Optional[str] = None, scope_id: Optional[uuid.UUID] = None):
        self._updated_at = updated_at
        self._scope_alias = scope_alias
        self._scope_id = scope_id

    @classmethod
    def from_json_dict(cls, data: dict) -> 'FlagMetadata':
        scope_id = opt_str(data, 'scopeId')
        try:
            parsed_scope_id = uuid.UUID(scope_id) if scope_id is not None else None
        except ValueError as e:
            raise ValueError('error in flag data: "%s" is not a UUID' % scope_id) from e
        return cls(
            updated_at=parse_timestamp(req_str(data, 'updatedAt')),
            scope_alias=opt_str(data, 'scopeAlias'),
            scope_id=parsed_scope_id,
        )

    @property
    def scope_alias(self) -> Optional[str]:
        return self._scope_alias

    @property
    def scope_id(self) -> Optional[uuid.UUID]:
        return self._scope_id

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def to_json_dict(self) -> dict:
        return {
            'scopeAlias': self._scope_alias,
            'scopeId': None if self._scope_id is None else str(self._scope_id),
            'updatedAt': format_timestamp(self._updated_at),
        }

    def __eq__(self, other) -> bool:
        return isinstance(other, FlagMetadata) and self.to_json_dict() == other.to_json_dict()

    def __repr__(self) -> str:
        return "FlagMetadata(%s)" % self.to_json_dict()


class FlagEntry:
    """
    The result of evaluating one flag, as returned by the Flare service.
    """

    __slots__ = ['_key', '_value', '_variant', '_reason', '_metadata']

    def __init__(self, key: str, value: bool, variant: Optional[str] = None, reason: str = '', metadata: Optional[FlagMetadata] = None):
        self._key = key
        self._value = value
        self._variant = variant
        self._reason = reason
        self._metadata = metadata

    @classmethod
    def from_json_dict(cls, data: dict) -> 'FlagEntry':
        if not isinstance(data, dict):
            raise ValueError('error in flag data: expected an object but got %s' % data.__class__)
        key = req_str(data, 'flagKey')
        if key == '':
            raise ValueError('error in flag data: "flagKey" is empty')
        metadata = opt_dict(data, 'flagMetadata')
        return cls(
            key=key,
            value=req_bool(data, 'value'),
            variant=opt_str(data, 'variant'),
            reason=opt_str(data, 'reason') or '',
            metadata=None if metadata is None else FlagMetadata.from_json_dict(metadata),
        )

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> bool:
        return self._value

    @property
    def variant(self) -> Optional[str]:
        return self._variant

    @property
    def reason(self) -> str:
        """The reason string exactly as the service sent it."""
        return self._reason

    @property
    def metadata(self) -> Optional[FlagMetadata]:
        return self._metadata

    def to_json_dict(self) -> dict:
        return {
            'flagKey': self._key,
            'value': self._value,
            'variant': self._variant,
            'reason': self._reason,
            'flagMetadata': None if self._metadata is None else self._metadata.to_json_dict(),
        }

    def __eq__(self, other) -> bool:
        return isinstance(other, FlagEntry) and self.to_json_dict() == other.to_json_dict()

    def __repr__(self) -> str:
        return "FlagEntry(%s)" % self.to_json_dict()
