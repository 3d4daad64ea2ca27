import threading
import time

from flareclient.config import Config
from flareclient.errors import ApiError, NetworkError, ParseError
from flareclient.impl.datasource.polling import (PollerState,
                                                 PollingSynchronizer,
                                                 build_snapshot)
from flareclient.impl.datasource.requester import FlagRequesterImpl
from flareclient.impl.model import FlagEntry
from flareclient.impl.snapshot_store import SnapshotStore
from flareclient.testing.http_util import start_server
from flareclient.testing.stub_util import (BlockingFlagRequester,
                                           MockFlagRequester, SpyListener,
                                           evaluate_all_content, flag_json)
from flareclient.testing.sync_util import wait_until

pp = None
mock_requester = None
store = None
ready = None


def setup_function():
    global mock_requester, store, ready
    mock_requester = MockFlagRequester()
    store = SnapshotStore()
    ready = threading.Event()


def teardown_function():
    if pp is not None:
        pp.stop()


def setup_processor(config, requester=None):
    global pp
    pp = PollingSynchronizer(config, requester or mock_requester, store, ready)
    pp.start()


def make_config(reload_interval=0, section='FeatureFlags'):
    return Config('http://flare', 'api-key', scope='prod', reload_interval=reload_interval, feature_flag_section=section)


def test_build_snapshot_namespaces_keys_and_lowercases_values():
    entries = [FlagEntry('new-ui', True, 'on', 'TARGETING_MATCH'), FlagEntry('beta', False)]
    assert build_snapshot('FeatureFlags', entries) == {'FeatureFlags:new-ui': 'true', 'FeatureFlags:beta': 'false'}


def test_successful_poll_replaces_snapshot():
    mock_requester.entries = [FlagEntry('new-ui', True, 'on', 'TARGETING_MATCH')]
    setup_processor(make_config())
    assert ready.wait(1)
    assert store.snapshot == {'FeatureFlags:new-ui': 'true'}
    assert mock_requester.last_scope == 'prod'
    assert pp.initialized()


def test_end_to_end_poll_against_server_builds_namespaced_snapshot():
    with start_server() as server:
        server.for_path('/sdk/v1/flags/evaluate-all', evaluate_all_content(flag_json('new-ui', True, 'on', 'TARGETING_MATCH')))
        config = Config(server.uri, 'api-key', scope='prod', feature_flag_section='FeatureFlags')
        setup_processor(config, FlagRequesterImpl(config))
        assert ready.wait(2)
        assert store.snapshot == {'FeatureFlags:new-ui': 'true'}


def test_custom_section_is_used_as_key_prefix():
    mock_requester.entries = [FlagEntry('new-ui', False)]
    setup_processor(make_config(section='Toggles'))
    assert ready.wait(1)
    assert store.snapshot == {'Toggles:new-ui': 'false'}


def test_zero_interval_fetches_once_and_never_reschedules():
    mock_requester.entries = [FlagEntry('new-ui', True)]
    setup_processor(make_config(reload_interval=0))
    assert ready.wait(1)
    time.sleep(0.2)
    assert mock_requester.request_count == 1


def test_periodic_polling_picks_up_changes():
    mock_requester.entries = [FlagEntry('new-ui', False)]
    spy = SpyListener()
    store.add_listener(spy)
    setup_processor(make_config(reload_interval=0.05))
    assert ready.wait(1)
    mock_requester.entries = [FlagEntry('new-ui', True)]
    wait_until(lambda: store.snapshot == {'FeatureFlags:new-ui': 'true'}, 1)
    assert spy.snapshots[0] == {}
    assert {'FeatureFlags:new-ui': 'false'} in spy.snapshots


def test_failed_tick_keeps_previous_snapshot_and_polling_continues():
    for error in [NetworkError("down"), ApiError(500, "API error (500): boom"), ParseError("bad"), Exception("unexpected")]:
        setup_function()
        mock_requester.entries = [FlagEntry('new-ui', True)]
        setup_processor(make_config(reload_interval=0.05))
        assert ready.wait(1)

        mock_requester.exception = error
        count = mock_requester.request_count
        wait_until(lambda: mock_requester.request_count >= count + 3, 1)
        assert store.snapshot == {'FeatureFlags:new-ui': 'true'}

        mock_requester.exception = None
        mock_requester.entries = [FlagEntry('new-ui', False)]
        wait_until(lambda: store.snapshot == {'FeatureFlags:new-ui': 'false'}, 1)
        pp.stop()


def test_unauthorized_does_not_stop_polling():
    mock_requester.exception = ApiError(401, "Unauthorized: Invalid or missing API key")
    setup_processor(make_config(reload_interval=0.05))
    wait_until(lambda: mock_requester.request_count >= 3, 1)
    assert not pp.initialized()
    assert store.snapshot == {}


def test_poller_returns_to_idle_after_each_tick():
    mock_requester.exception = NetworkError("down")
    setup_processor(make_config())
    wait_until(lambda: mock_requester.request_count == 1, 1)
    wait_until(lambda: pp.state == PollerState.IDLE, 1)


def test_refresh_is_skipped_while_a_fetch_is_in_flight():
    requester = BlockingFlagRequester()
    requester.entries = [FlagEntry('new-ui', True)]
    setup_processor(make_config(), requester)
    assert requester.entered.wait(1)
    assert pp.state == PollerState.FETCHING

    assert pp.refresh() is False
    assert requester.request_count == 1

    requester.release.set()
    assert ready.wait(1)
    assert wait_until(lambda: pp.refresh(), 1) is True
    assert requester.request_count == 2


def test_result_of_fetch_in_flight_is_discarded_after_stop():
    requester = BlockingFlagRequester()
    requester.entries = [FlagEntry('new-ui', True)]
    setup_processor(make_config(), requester)
    assert requester.entered.wait(1)

    pp.stop()
    requester.release.set()
    time.sleep(0.1)
    assert store.snapshot == {}
    assert not pp.initialized()


def test_poll_passes_stop_signal_as_cancellation():
    setup_processor(make_config())
    assert ready.wait(1)
    assert mock_requester.last_cancel is not None
    assert mock_requester.last_cancel.is_set() is False
    pp.stop()
    assert mock_requester.last_cancel.is_set() is True


def test_missing_scope_skips_fetch():
    config = Config('http://flare', 'api-key')
    setup_processor(config)
    time.sleep(0.1)
    assert mock_requester.request_count == 0
    assert not ready.is_set()
