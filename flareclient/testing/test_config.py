import pytest

from flareclient.config import Config, HTTPConfig, parse_interval


def test_defaults():
    config = Config('https://flare.example.com/', 'api-key')
    assert config.server_url == 'https://flare.example.com'
    assert config.scope is None
    assert config.reload_interval == 0
    assert config.feature_flag_section == 'FeatureFlags'
    assert config.offline is False
    assert config.http.connect_timeout == 10
    assert config.http.read_timeout == 15


def test_negative_reload_interval_disables_refresh():
    assert Config('http://flare', 'api-key', reload_interval=-5).reload_interval == 0


def test_empty_section_falls_back_to_default():
    assert Config('http://flare', 'api-key', feature_flag_section='').feature_flag_section == 'FeatureFlags'


@pytest.mark.parametrize('api_key', [None, 42, 'abc\ndef'])
def test_invalid_api_key_is_discarded(api_key):
    assert Config('http://flare', api_key).api_key == ''


@pytest.mark.parametrize('value, expected', [
    (None, 0),
    (30, 30),
    (2.5, 2.5),
    ('45', 45),
    ('00:00:30', 30),
    ('01:02:03', 3723),
    ('1.00:00:00', 86400),
    ('00:00:01.5', 1.5),
    ('soon', 0),
    (True, 0),
])
def test_parse_interval(value, expected):
    assert parse_interval(value) == expected


def test_from_dict_with_camel_case_keys():
    config = Config.from_dict({
        'serverUrl': 'https://flare.example.com',
        'apiKey': 'api-key',
        'scopeAlias': 'prod',
        'reloadInterval': '00:00:30',
        'featureFlagSection': 'Toggles',
        'http': {'connectTimeout': 2, 'readTimeout': 3},
    })
    assert config.server_url == 'https://flare.example.com'
    assert config.api_key == 'api-key'
    assert config.scope == 'prod'
    assert config.reload_interval == 30
    assert config.feature_flag_section == 'Toggles'
    assert config.http.connect_timeout == 2
    assert config.http.read_timeout == 3


def test_from_dict_with_snake_case_keys():
    config = Config.from_dict({
        'server_url': 'https://flare.example.com',
        'api_key': 'api-key',
        'scope': 'prod',
        'reload_interval': 10,
        'offline': True,
    })
    assert config.scope == 'prod'
    assert config.reload_interval == 10
    assert config.offline is True
    assert config.feature_flag_section == 'FeatureFlags'


def test_from_empty_dict():
    config = Config.from_dict({})
    assert config.server_url == ''
    assert config.api_key == ''
    assert config.scope is None
    assert config.reload_interval == 0


def test_http_config_properties():
    http = HTTPConfig(connect_timeout=1, read_timeout=2, http_proxy='http://proxy:8080', ca_certs='/tmp/ca.pem', disable_ssl_verification=True)
    assert http.http_proxy == 'http://proxy:8080'
    assert http.ca_certs == '/tmp/ca.pem'
    assert http.disable_ssl_verification is True
