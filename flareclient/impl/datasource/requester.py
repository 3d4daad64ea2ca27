"""
Default implementation of the calls to the Flare evaluation service.
"""

import json
from threading import Event
from typing import List, Optional

import urllib3

from flareclient.context import EvaluationContext
from flareclient.errors import (CancelledError, InvalidArgumentError,
                                NetworkError, ParseError, RequestTimeoutError)
from flareclient.impl.http import _http_factory
from flareclient.impl.model import FlagEntry
from flareclient.impl.util import (_headers, decode_json_body, log,
                                   throw_if_unsuccessful_response)
from flareclient.interfaces import FlagRequester

EVALUATE_URI = '/sdk/v1/flags/evaluate'
EVALUATE_ALL_URI = '/sdk/v1/flags/evaluate-all'


def resolve_scope(context: Optional[EvaluationContext]) -> str:
    scope = None if context is None else context.scope
    if scope is None:
        raise InvalidArgumentError("Scope cannot be null or empty.")
    return scope


class FlagRequesterImpl(FlagRequester):
    def __init__(self, config):
        self._config = config
        factory = _http_factory(config)
        self._http = factory.create_pool_manager(1, config.server_url)
        self._timeout = factory.timeout
        self._evaluate_uri = config.server_url + EVALUATE_URI
        self._evaluate_all_uri = config.server_url + EVALUATE_ALL_URI

    def fetch_all(self, scope: str, cancel: Optional[Event] = None) -> List[FlagEntry]:
        body = {'context': {'scope': scope}}
        data = self._post(self._evaluate_all_uri, body, 'evaluate-all', cancel)

        flags = data.get('flags') if isinstance(data, dict) else None
        if not isinstance(flags, list):
            raise ParseError("Failed to deserialize evaluate-all response: missing flags")
        return [self._parse_entry(item, 'evaluate-all') for item in flags]

    def fetch_one(self, flag_key: str, context: Optional[EvaluationContext], cancel: Optional[Event] = None) -> FlagEntry:
        if not isinstance(flag_key, str) or flag_key.strip() == '':
            raise InvalidArgumentError("Flag key cannot be null or empty.")
        scope = resolve_scope(context)

        body = {'flagKey': flag_key, 'context': {'scope': scope, 'targetingKey': context.targeting_key}}
        data = self._post(self._evaluate_uri, body, 'evaluate', cancel)
        if data is None:
            raise ParseError("Failed to deserialize evaluate response")
        return self._parse_entry(data, 'evaluate')

    def close(self):
        self._http.clear()

    def _post(self, uri: str, body: dict, description: str, cancel: Optional[Event]):
        _raise_if_cancelled(cancel)
        try:
            r = self._http.request('POST', uri, headers=_headers(self._config), body=json.dumps(body), timeout=self._timeout, retries=1)
        except urllib3.exceptions.MaxRetryError as e:
            raise _network_error(e.reason or e, description) from e
        except urllib3.exceptions.HTTPError as e:
            raise _network_error(e, description) from e
        # a response that arrives after cancellation is discarded, never returned
        _raise_if_cancelled(cancel)
        log.debug("%s response status:[%d]", uri, r.status)
        throw_if_unsuccessful_response(r)
        return decode_json_body(r, description)

    @staticmethod
    def _parse_entry(item, description: str) -> FlagEntry:
        try:
            return FlagEntry.from_json_dict(item)
        except ValueError as e:
            raise ParseError("Failed to deserialize %s response: %s" % (description, e)) from e


def _raise_if_cancelled(cancel: Optional[Event]):
    if cancel is not None and cancel.is_set():
        raise CancelledError("request was cancelled")


def _network_error(e: Exception, description: str) -> NetworkError:
    if isinstance(e, urllib3.exceptions.TimeoutError):
        return RequestTimeoutError("%s request timed out: %s" % (description, e))
    return NetworkError("%s request failed: %s" % (description, e))
