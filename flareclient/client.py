"""
This submodule contains the client class that provides most of the SDK functionality.
"""

import threading
from threading import Event
from typing import Callable, Optional

from flareclient.config import Config
from flareclient.configuration import FlagConfiguration
from flareclient.context import EvaluationContext
from flareclient.evaluation import ErrorKind, Reason, ResolutionDetails
from flareclient.impl.datasource.polling import (NullUpdateProcessor,
                                                 PollingSynchronizer)
from flareclient.impl.datasource.requester import FlagRequesterImpl
from flareclient.impl.snapshot_store import Snapshot, SnapshotStore
from flareclient.impl.util import log
from flareclient.interfaces import FlagRequester, UpdateProcessor
from flareclient.provider import FlareProvider


class FlareClient:
    """The Flare SDK client object.

    The client owns one :class:`~flareclient.impl.snapshot_store.SnapshotStore`, keeps it in sync
    with the Flare service in the background, and resolves individual flags on demand through a
    :class:`~flareclient.provider.FlareProvider`.

    Applications should create the client at startup and keep using it for the lifetime of the
    process. Client instances are thread-safe.
    """

    def __init__(self, config: Config, start_wait: float = 5, requester: Optional[FlagRequester] = None):
        """Constructs a new FlareClient instance.

        :param config: the client configuration
        :param start_wait: the number of seconds to wait for the first snapshot
        :param requester: replaces the HTTP client for the evaluation service; mostly for testing
        """
        self._config = config
        self._config._validate()

        self._store = SnapshotStore()
        self._requester = requester if requester is not None else FlagRequesterImpl(config)
        self._provider = FlareProvider(self._requester, default_scope=config.scope)
        self._configuration = FlagConfiguration(self._store, config.feature_flag_section)

        ready = threading.Event()
        self._update_processor = self._make_update_processor(config, ready)
        self._update_processor.start()

        if not config.offline:
            if start_wait > 60:
                log.warning(f"Client was configured to block for up to {start_wait} seconds when initializing. We recommend blocking no longer than 60.")

            if start_wait > 0:
                log.info("Waiting up to " + str(start_wait) + " seconds for Flare client to initialize...")
                ready.wait(start_wait)

        if self._update_processor.initialized() is True:
            log.info("Started Flare client: OK")
        else:
            log.warning("Initialization timeout exceeded for Flare client or an error occurred. Feature flags may not yet be available.")

    def _make_update_processor(self, config: Config, ready: Event) -> UpdateProcessor:
        if config.offline:
            log.info("Started Flare client in offline mode")
            return NullUpdateProcessor(ready)
        return PollingSynchronizer(config, self._requester, self._store, ready)

    @property
    def provider(self) -> FlareProvider:
        return self._provider

    @property
    def snapshot_store(self) -> SnapshotStore:
        return self._store

    def snapshot(self) -> Snapshot:
        """Returns the most recent complete flag snapshot."""
        return self._store.snapshot

    def configuration(self) -> FlagConfiguration:
        """Returns the read-only configuration view that follows the snapshot."""
        return self._configuration

    def add_snapshot_listener(self, listener: Callable[[Snapshot], None]):
        """Registers a listener; it is called at once with the current snapshot, then after every update."""
        self._store.add_listener(listener)

    def remove_snapshot_listener(self, listener: Callable[[Snapshot], None]):
        self._store.remove_listener(listener)

    def is_enabled(self, flag_key: str, default: bool = False) -> bool:
        """Reads a flag from the local snapshot, without a network call.

        :param flag_key: the flag key, without the section prefix
        :param default: returned if the flag is not in the snapshot
        """
        value = self._store.get('%s:%s' % (self._config.feature_flag_section, flag_key))
        if value is None:
            return default
        return value.lower() == 'true'

    def variation_detail(self, flag_key: str, default: bool, context: Optional[EvaluationContext] = None, cancel: Optional[Event] = None) -> ResolutionDetails:
        """Evaluates a flag against the service and describes how the value was determined.

        In offline mode the default is returned with ``PROVIDER_NOT_READY``.
        """
        if self._config.offline:
            return ResolutionDetails(flag_key, default, Reason.ERROR, error_kind=ErrorKind.PROVIDER_NOT_READY, error_message="client is offline")
        return self._provider.resolve_boolean_details(flag_key, default, context, cancel)

    def refresh(self) -> bool:
        """Polls the service now, on the calling thread. Returns True if a new snapshot was published."""
        if isinstance(self._update_processor, PollingSynchronizer):
            return self._update_processor.refresh()
        return False

    def is_offline(self) -> bool:
        return self._config.offline

    def is_initialized(self) -> bool:
        """Returns true once the first complete snapshot has been published (always true offline)."""
        return self.is_offline() or self._update_processor.initialized()

    def close(self):
        """Stops background polling and releases network connections."""
        log.info("Closing Flare client..")
        self._update_processor.stop()
        close = getattr(self._requester, 'close', None)
        if close is not None:
            close()

    # These magic methods allow a client object to be automatically cleaned up by the "with" scope operator
    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.close()
