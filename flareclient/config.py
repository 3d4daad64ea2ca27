"""
This submodule contains the :class:`Config` class for configuring the Flare SDK client.
"""

import re
from typing import Any, Mapping, Optional, Union

from flareclient.impl.util import log

DEFAULT_FEATURE_FLAG_SECTION = 'FeatureFlags'

_TIMESPAN_REGEX = re.compile(r'^(?:(\d+)\.)?(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d+))?$')


class HTTPConfig:
    """Advanced HTTP configuration options for the Flare client.

    These rarely need to be changed. Construct an ``HTTPConfig`` and pass it as the ``http``
    parameter of :class:`Config`.
    """

    def __init__(
        self,
        connect_timeout: float = 10,
        read_timeout: float = 15,
        http_proxy: Optional[str] = None,
        ca_certs: Optional[str] = None,
        disable_ssl_verification: bool = False,
    ):
        """
        :param connect_timeout: The connect timeout for network connections in seconds.
        :param read_timeout: The read timeout for network connections in seconds.
        :param http_proxy: The full URI of a proxy to use for every connection to the Flare server;
          for example: http://my-proxy.com:1234. When unset, the ``http_proxy``/``https_proxy`` and
          ``no_proxy`` environment variables are honoured.
        :param ca_certs: If using a custom certificate authority, set this to the file path of the
          certificate bundle.
        :param disable_ssl_verification: If true, completely disables certificate verification for
          secure requests. This is unsafe and should not be used in a production environment.
        """
        self.__connect_timeout = connect_timeout
        self.__read_timeout = read_timeout
        self.__http_proxy = http_proxy
        self.__ca_certs = ca_certs
        self.__disable_ssl_verification = disable_ssl_verification

    @property
    def connect_timeout(self) -> float:
        return self.__connect_timeout

    @property
    def read_timeout(self) -> float:
        return self.__read_timeout

    @property
    def http_proxy(self) -> Optional[str]:
        return self.__http_proxy

    @property
    def ca_certs(self) -> Optional[str]:
        return self.__ca_certs

    @property
    def disable_ssl_verification(self) -> bool:
        return self.__disable_ssl_verification


class Config:
    """Configuration options for the Flare client.

    Create an instance of ``Config`` and pass it to the :class:`flareclient.client.FlareClient`
    constructor.
    """

    def __init__(
        self,
        server_url: str,
        api_key: str,
        scope: Optional[str] = None,
        reload_interval: float = 0,
        feature_flag_section: str = DEFAULT_FEATURE_FLAG_SECTION,
        offline: bool = False,
        http: HTTPConfig = HTTPConfig(),
    ):
        """
        :param server_url: The base URL of the Flare server, e.g. ``https://flare.example.com``.
        :param api_key: The API key, sent as a Bearer token on every request.
        :param scope: The scope (or scope alias) whose flags are synchronized into the snapshot. It is
          also the default scope of the evaluation provider when a context does not name one.
        :param reload_interval: The number of seconds between polls. Zero disables periodic refresh:
          the flags are fetched once at startup and never again.
        :param feature_flag_section: The prefix of every snapshot key; flag ``new-ui`` is published as
          ``"{feature_flag_section}:new-ui"``.
        :param offline: If true, no network requests are made and the snapshot stays empty.
        :param http: Optional properties for customizing the client's HTTP/HTTPS behavior. See
          :class:`HTTPConfig`.
        """
        self.__server_url = (server_url or '').rstrip('/')
        self.__api_key = _validate_api_key(api_key)
        self.__scope = scope or None
        if reload_interval is None or reload_interval < 0:
            if reload_interval is not None:
                log.warning("reload_interval was negative (%s); periodic refresh is disabled" % reload_interval)
            reload_interval = 0
        self.__reload_interval = float(reload_interval)
        self.__feature_flag_section = feature_flag_section or DEFAULT_FEATURE_FLAG_SECTION
        self.__offline = offline
        self.__http = http

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'Config':
        """Builds a ``Config`` from a settings section, such as a parsed JSON or YAML file.

        Both camelCase (``serverUrl``, ``apiKey``, ``scopeAlias``, ``reloadInterval``,
        ``featureFlagSection``) and snake_case keys are accepted. ``reloadInterval`` may be a number
        of seconds or a ``"HH:MM:SS"`` time span.
        """

        def pick(*names, default=None):
            for name in names:
                if name in values and values[name] is not None:
                    return values[name]
            return default

        http_values = pick('http', default={}) or {}
        http = HTTPConfig(
            connect_timeout=float(http_values.get('connectTimeout', http_values.get('connect_timeout', 10))),
            read_timeout=float(http_values.get('readTimeout', http_values.get('read_timeout', 15))),
            http_proxy=http_values.get('httpProxy', http_values.get('http_proxy')),
            ca_certs=http_values.get('caCerts', http_values.get('ca_certs')),
            disable_ssl_verification=bool(http_values.get('disableSslVerification', http_values.get('disable_ssl_verification', False))),
        )

        return cls(
            server_url=pick('serverUrl', 'server_url', default=''),
            api_key=pick('apiKey', 'api_key', default=''),
            scope=pick('scopeAlias', 'scope_alias', 'scope'),
            reload_interval=parse_interval(pick('reloadInterval', 'reload_interval', default=0)),
            feature_flag_section=pick('featureFlagSection', 'feature_flag_section', default=DEFAULT_FEATURE_FLAG_SECTION),
            offline=bool(pick('offline', default=False)),
            http=http,
        )

    @property
    def server_url(self) -> str:
        return self.__server_url

    @property
    def api_key(self) -> str:
        return self.__api_key

    @property
    def scope(self) -> Optional[str]:
        return self.__scope

    @property
    def reload_interval(self) -> float:
        return self.__reload_interval

    @property
    def feature_flag_section(self) -> str:
        return self.__feature_flag_section

    @property
    def offline(self) -> bool:
        return self.__offline

    @property
    def http(self) -> HTTPConfig:
        return self.__http

    def _validate(self):
        if self.offline is False and self.server_url == '':
            log.warning("Missing or blank server_url.")
        if self.offline is False and self.api_key == '':
            log.warning("Missing or blank api_key.")
        if self.offline is False and self.scope is None:
            log.warning("No scope configured; flag snapshots cannot be fetched.")


def parse_interval(value: Union[None, int, float, str]) -> float:
    """Converts a reload interval given as seconds or as a ``[d.]HH:MM:SS[.fff]`` span to seconds."""
    if value is None:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        match = _TIMESPAN_REGEX.match(text)
        if match is not None:
            days, hours, minutes, seconds, fraction = match.groups()
            total = int(days or 0) * 86400 + int(hours) * 3600 + int(minutes) * 60 + int(seconds)
            if fraction:
                total += float('0.' + fraction)
            return float(total)
        try:
            return float(text)
        except ValueError:
            pass
    log.warning("Ignoring unrecognized reload interval: %r" % (value,))
    return 0


def _validate_api_key(api_key: Any) -> str:
    if api_key is None or api_key == '':
        return ''
    if not isinstance(api_key, str):
        log.warning('API key was not a string and was discarded')
        return ''
    if any(c in api_key for c in '\r\n'):
        log.warning('API key contained line breaks and was discarded')
        return ''
    return api_key
