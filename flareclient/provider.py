"""
This submodule contains :class:`FlareProvider`, which resolves one flag per call against the
Flare evaluation service.
"""

from threading import Event
from typing import Any, Dict, Mapping, Optional, TypeVar

from flareclient.context import SCOPE_ATTRIBUTE, EvaluationContext
from flareclient.errors import (ApiError, CancelledError, NetworkError,
                                ParseError, RequestTimeoutError)
from flareclient.evaluation import (ErrorKind, ProviderMetadata, Reason,
                                    ResolutionDetails, map_reason)
from flareclient.impl.model import FlagMetadata, format_timestamp
from flareclient.impl.util import log
from flareclient.interfaces import FlagRequester

T = TypeVar('T')

_PROVIDER_METADATA = ProviderMetadata("Flare Provider")

_TYPE_MISMATCH_MESSAGE = "Flare provider only supports boolean flag evaluation"


class FlareProvider:
    """
    Resolves flags on demand, one service call per resolution.

    Resolution never raises for service, network or payload problems: the caller always gets a
    :class:`~flareclient.evaluation.ResolutionDetails` carrying either the flag's value or the
    caller's own default together with an :class:`~flareclient.evaluation.ErrorKind`. The one
    exception is cancellation requested by the caller through ``cancel``, which is raised as
    :class:`~flareclient.errors.CancelledError`.

    Only boolean flags are supported; every other resolution returns the default value with
    ``TYPE_MISMATCH``.
    """

    def __init__(self, requester: FlagRequester, default_scope: Optional[str] = None):
        """
        :param requester: the client for the evaluation service
        :param default_scope: the scope to use when a context does not name one
        """
        self.__requester = requester
        self.__default_scope = default_scope or None

    def get_metadata(self) -> ProviderMetadata:
        return _PROVIDER_METADATA

    def boolean_value(self, flag_key: str, default_value: bool, context: Optional[EvaluationContext] = None, cancel: Optional[Event] = None) -> bool:
        return self.resolve_boolean_details(flag_key, default_value, context, cancel).value

    def resolve_boolean_details(self, flag_key: str, default_value: bool, context: Optional[EvaluationContext] = None, cancel: Optional[Event] = None) -> ResolutionDetails:
        try:
            entry = self.__requester.fetch_one(flag_key, self.__with_default_scope(context), cancel)
        except CancelledError as e:
            if cancel is not None and cancel.is_set():
                log.warning("Flag evaluation cancelled for %s", flag_key)
                raise
            log.error("Timeout evaluating flag %s: %s", flag_key, e)
            return _error_result(flag_key, default_value, ErrorKind.PROVIDER_NOT_READY, "request timeout")
        except ApiError as e:
            log.error("API error evaluating flag %s: %d", flag_key, e.status)
            return _error_result(flag_key, default_value, ErrorKind.GENERAL, e.message)
        except RequestTimeoutError as e:
            log.error("Timeout evaluating flag %s: %s", flag_key, e)
            return _error_result(flag_key, default_value, ErrorKind.PROVIDER_NOT_READY, "request timeout")
        except NetworkError as e:
            log.error("HTTP error evaluating flag %s: %s", flag_key, e)
            return _error_result(flag_key, default_value, ErrorKind.PROVIDER_NOT_READY, str(e))
        except ParseError as e:
            log.error("JSON parsing error for flag %s: %s", flag_key, e)
            return _error_result(flag_key, default_value, ErrorKind.PARSE_ERROR, str(e))
        except Exception as e:
            log.exception("Unexpected error evaluating flag %s" % flag_key)
            return _error_result(flag_key, default_value, ErrorKind.GENERAL, str(e))

        reason = map_reason(entry.reason)
        return ResolutionDetails(
            flag_key=flag_key,
            value=entry.value,
            variant=entry.variant,
            reason=reason,
            raw_reason=entry.reason if reason == Reason.UNKNOWN and entry.reason else None,
            flag_metadata=build_flag_metadata(entry.metadata),
        )

    def resolve_string_details(self, flag_key: str, default_value: str, context: Optional[EvaluationContext] = None, cancel: Optional[Event] = None) -> ResolutionDetails:
        return _type_mismatch_result(flag_key, default_value)

    def resolve_integer_details(self, flag_key: str, default_value: int, context: Optional[EvaluationContext] = None, cancel: Optional[Event] = None) -> ResolutionDetails:
        return _type_mismatch_result(flag_key, default_value)

    def resolve_float_details(self, flag_key: str, default_value: float, context: Optional[EvaluationContext] = None, cancel: Optional[Event] = None) -> ResolutionDetails:
        return _type_mismatch_result(flag_key, default_value)

    def resolve_object_details(self, flag_key: str, default_value: Any, context: Optional[EvaluationContext] = None, cancel: Optional[Event] = None) -> ResolutionDetails:
        return _type_mismatch_result(flag_key, default_value)

    def __with_default_scope(self, context: Optional[EvaluationContext]) -> Optional[EvaluationContext]:
        if self.__default_scope is None or (context is not None and context.scope is not None):
            return context
        return EvaluationContext(attributes={SCOPE_ATTRIBUTE: self.__default_scope}).merge(_without_scope(context))


def _without_scope(context: Optional[EvaluationContext]) -> Optional[EvaluationContext]:
    # an unusable "scope" attribute must not override the default
    if context is None:
        return None
    attributes = context.attributes
    attributes.pop(SCOPE_ATTRIBUTE, None)
    return EvaluationContext(context.targeting_key, attributes)


def build_flag_metadata(metadata: Optional[FlagMetadata]) -> Optional[Mapping[str, str]]:
    if metadata is None:
        return None
    result = {}  # type: Dict[str, str]
    if metadata.scope_alias is not None:
        result['scopeAlias'] = metadata.scope_alias
    if metadata.scope_id is not None:
        result['scopeId'] = str(metadata.scope_id)
    result['updatedAt'] = format_timestamp(metadata.updated_at)
    return result


def _error_result(flag_key: str, default_value: T, error_kind: ErrorKind, message: Optional[str]) -> ResolutionDetails:
    return ResolutionDetails(flag_key=flag_key, value=default_value, reason=Reason.ERROR, error_kind=error_kind, error_message=message)


def _type_mismatch_result(flag_key: str, default_value: T) -> ResolutionDetails:
    return _error_result(flag_key, default_value, ErrorKind.TYPE_MISMATCH, _TYPE_MISMATCH_MESSAGE)
