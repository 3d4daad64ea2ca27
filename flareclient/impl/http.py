from os import environ
from typing import Optional, Tuple
from urllib.parse import urlparse

import certifi
import urllib3

from flareclient.version import VERSION


def _base_headers(config):
    headers = {'User-Agent': 'FlarePythonClient/' + VERSION}
    if config.api_key:
        headers['Authorization'] = 'Bearer ' + config.api_key
    return headers


def _http_factory(config):
    return HTTPFactory(config.http)


class HTTPFactory:
    def __init__(self, http_config):
        self.__http_config = http_config
        self.__timeout = urllib3.Timeout(connect=http_config.connect_timeout, read=http_config.read_timeout)

    @property
    def timeout(self):
        return self.__timeout

    def create_pool_manager(self, num_pools, target_base_uri):
        proxy_url = self.__http_config.http_proxy or _get_proxy_url(target_base_uri)

        if self.__http_config.disable_ssl_verification:
            cert_reqs = 'CERT_NONE'
            ca_certs = None
        else:
            cert_reqs = 'CERT_REQUIRED'
            ca_certs = self.__http_config.ca_certs or certifi.where()

        if proxy_url is None:
            return urllib3.PoolManager(num_pools=num_pools, cert_reqs=cert_reqs, ca_certs=ca_certs)

        url = urllib3.util.parse_url(proxy_url)
        proxy_headers = None
        if url.auth is not None:
            proxy_headers = urllib3.util.make_headers(proxy_basic_auth=url.auth)
        return urllib3.ProxyManager(proxy_url, num_pools=num_pools, cert_reqs=cert_reqs, ca_certs=ca_certs, proxy_headers=proxy_headers)


def _get_proxy_url(target_base_uri: Optional[str]) -> Optional[str]:
    """
    Picks the proxy for the Flare server from the http_proxy/https_proxy environment variables,
    unless no_proxy is '*' or names the server's host (optionally with its port).
    """
    if target_base_uri is None:
        return None

    target_host, target_port, is_https = _get_target_host_and_port(target_base_uri)

    proxy_url = environ.get('https_proxy') if is_https else environ.get('http_proxy')
    no_proxy = environ.get('no_proxy', '').strip()

    if proxy_url is None or no_proxy == '*':
        return None

    for entry in (e.strip() for e in no_proxy.split(',')):
        if entry == '':
            continue
        host, _, port = entry.partition(':')
        if host == '':
            continue
        if target_host.endswith(host) and (port == '' or target_port == int(port)):
            return None

    return proxy_url


def _get_target_host_and_port(uri: str) -> Tuple[str, int, bool]:
    if '//' not in uri:
        host, _, port = uri.partition(':')
        return host, int(port) if port else 80, False

    parsed = urlparse(uri)
    is_https = parsed.scheme == 'https'
    port = parsed.port
    if port is None:
        port = 443 if is_https else 80

    return parsed.hostname or "", port, is_https
