import time

import mock

from flareclient.client import FlareClient
from flareclient.config import Config
from flareclient.context import EvaluationContext
from flareclient.errors import NetworkError
from flareclient.evaluation import ErrorKind, Reason
from flareclient.impl.model import FlagEntry
from flareclient.testing.stub_util import MockFlagRequester, SpyListener
from flareclient.testing.sync_util import wait_until


def make_config(**kwargs):
    values = {'server_url': 'http://flare', 'api_key': 'api-key', 'scope': 'prod'}
    values.update(kwargs)
    return Config(**values)


def make_client(requester, start_wait=1, **kwargs):
    return FlareClient(make_config(**kwargs), start_wait=start_wait, requester=requester)


def test_client_waits_for_first_snapshot():
    requester = MockFlagRequester()
    requester.entries = [FlagEntry('new-ui', True), FlagEntry('beta', False)]
    with make_client(requester) as client:
        assert client.is_initialized() is True
        assert client.snapshot() == {'FeatureFlags:new-ui': 'true', 'FeatureFlags:beta': 'false'}
        assert requester.last_scope == 'prod'


def test_client_is_not_initialized_when_first_poll_fails():
    requester = MockFlagRequester()
    requester.exception = NetworkError('down')
    with make_client(requester, start_wait=0.2) as client:
        assert client.is_initialized() is False
        assert client.snapshot() == {}


def test_is_enabled_reads_snapshot():
    requester = MockFlagRequester()
    requester.entries = [FlagEntry('new-ui', True), FlagEntry('beta', False)]
    with make_client(requester) as client:
        count = requester.request_count
        assert client.is_enabled('new-ui') is True
        assert client.is_enabled('NEW-UI') is True
        assert client.is_enabled('beta', True) is False
        assert client.is_enabled('missing') is False
        assert client.is_enabled('missing', True) is True
        assert requester.request_count == count


def test_is_enabled_uses_configured_section():
    requester = MockFlagRequester()
    requester.entries = [FlagEntry('new-ui', True)]
    with make_client(requester, feature_flag_section='Toggles') as client:
        assert client.snapshot() == {'Toggles:new-ui': 'true'}
        assert client.is_enabled('new-ui') is True
        assert client.configuration().get_bool('new-ui') is True


def test_variation_detail_uses_configured_scope_as_default():
    requester = MockFlagRequester()
    requester.entry = FlagEntry('new-ui', True, 'on', 'TARGETING_MATCH')
    with make_client(requester) as client:
        details = client.variation_detail('new-ui', False, EvaluationContext('user-1'))
        assert details.value is True
        assert details.reason == Reason.TARGETING_MATCH
        assert requester.last_context.scope == 'prod'


def test_refresh_publishes_new_snapshot():
    requester = MockFlagRequester()
    requester.entries = [FlagEntry('new-ui', False)]
    with make_client(requester) as client:
        requester.entries = [FlagEntry('new-ui', True)]
        assert wait_until(client.refresh, 1) is True
        assert client.is_enabled('new-ui') is True


def test_snapshot_listeners():
    requester = MockFlagRequester()
    requester.entries = [FlagEntry('new-ui', False)]
    with make_client(requester) as client:
        spy = SpyListener()
        client.add_snapshot_listener(spy)
        assert spy.snapshots == [{'FeatureFlags:new-ui': 'false'}]

        requester.entries = [FlagEntry('new-ui', True)]
        wait_until(client.refresh, 1)
        client.remove_snapshot_listener(spy)
        requester.entries = []
        client.refresh()
        assert spy.snapshots == [{'FeatureFlags:new-ui': 'false'}, {'FeatureFlags:new-ui': 'true'}]


def test_periodic_refresh():
    requester = MockFlagRequester()
    requester.entries = [FlagEntry('new-ui', False)]
    with make_client(requester, reload_interval=0.05) as client:
        requester.entries = [FlagEntry('new-ui', True)]
        wait_until(lambda: client.is_enabled('new-ui'), 1)


def test_offline_client_makes_no_requests():
    requester = MockFlagRequester()
    with make_client(requester, offline=True) as client:
        assert client.is_offline() is True
        assert client.is_initialized() is True
        assert client.snapshot() == {}
        assert client.refresh() is False

        details = client.variation_detail('new-ui', True, EvaluationContext.with_scope('prod'))
        assert details.value is True
        assert details.error_kind == ErrorKind.PROVIDER_NOT_READY
        assert requester.request_count == 0


def test_close_stops_polling_and_closes_requester():
    requester = MockFlagRequester()
    client = make_client(requester, reload_interval=0.05)
    client.close()
    assert requester.closed is True
    assert requester.last_cancel.is_set() is True
    time.sleep(0.1)
    count = requester.request_count
    time.sleep(0.2)
    assert requester.request_count == count


def test_context_manager_closes_client():
    requester = MockFlagRequester()
    with mock.patch.object(FlareClient, 'close') as close:
        with make_client(requester):
            pass
        close.assert_called_once_with()


def test_configuration_view_follows_client():
    requester = MockFlagRequester()
    requester.entries = [FlagEntry('new-ui', False)]
    with make_client(requester) as client:
        flags = client.configuration()
        requester.entries = [FlagEntry('new-ui', True)]
        wait_until(client.refresh, 1)
        assert flags.get_bool('new-ui') is True


def test_configuration_view_is_created_once():
    requester = MockFlagRequester()
    with make_client(requester) as client:
        with mock.patch.object(client.snapshot_store, 'add_listener') as add_listener:
            first = client.configuration()
            second = client.configuration()
        assert first is second
        add_listener.assert_not_called()


def test_is_enabled_and_configuration_agree_on_mixed_case_values():
    requester = MockFlagRequester()
    with make_client(requester) as client:
        client.snapshot_store.set_value('FeatureFlags:x', 'True')
        assert client.is_enabled('x') is True
        assert client.configuration().get_bool('x') is True
