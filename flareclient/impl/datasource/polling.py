"""
Default implementation of the polling component that keeps the flag snapshot in sync.
"""

from enum import Enum
from threading import Event, Lock
from typing import Dict, Iterable, Optional

from flareclient.config import Config
from flareclient.errors import ApiError, CancelledError
from flareclient.impl.model import FlagEntry
from flareclient.impl.repeating_task import RepeatingTask
from flareclient.impl.snapshot_store import SnapshotStore
from flareclient.impl.util import http_error_message, log
from flareclient.interfaces import FlagRequester, UpdateProcessor


class PollerState(Enum):
    IDLE = 'IDLE'
    FETCHING = 'FETCHING'


def build_snapshot(section: str, entries: Iterable[FlagEntry]) -> Dict[str, str]:
    """
    Turns evaluations into snapshot keys and values: ``"{section}:{flagKey}" -> "true"/"false"``.
    """
    return {'%s:%s' % (section, entry.key): str(entry.value).lower() for entry in entries}


class PollingSynchronizer(UpdateProcessor):
    def __init__(self, config: Config, requester: FlagRequester, store: SnapshotStore, ready: Event):
        self._config = config
        self._requester = requester
        self._store = store
        self._ready = ready
        self._task = RepeatingTask("flareclient.datasource.polling", config.reload_interval, 0, self._poll)
        self._fetch_lock = Lock()
        self._publish_lock = Lock()
        self._generation = 0
        self._published_generation = 0
        self._state = PollerState.IDLE

    @property
    def state(self) -> PollerState:
        return self._state

    def start(self):
        if self._config.reload_interval > 0:
            log.info("Starting PollingSynchronizer with reload interval: " + str(self._config.reload_interval))
        else:
            log.info("Starting PollingSynchronizer in one-shot mode; flags will be fetched once")
        self._task.start()

    def initialized(self) -> bool:
        return self._ready.is_set()

    def stop(self):
        log.info("Stopping PollingSynchronizer")
        self._task.stop()

    def refresh(self) -> bool:
        """
        Runs one poll on the calling thread. If a poll is already in flight it is skipped.

        :return: True if a new snapshot was published
        """
        return self._poll()

    def _poll(self) -> bool:
        if not self._fetch_lock.acquire(blocking=False):
            log.debug("Skipping poll because a previous one is still in flight")
            return False
        try:
            self._state = PollerState.FETCHING
            return self._fetch_and_publish()
        finally:
            self._state = PollerState.IDLE
            self._fetch_lock.release()

    def _fetch_and_publish(self) -> bool:
        if self._config.scope is None:
            log.error("Cannot poll for flags: no scope is configured")
            return False
        with self._publish_lock:
            self._generation += 1
            generation = self._generation

        stopped = self._task.stopped
        try:
            entries = self._requester.fetch_all(self._config.scope, cancel=stopped)
        except CancelledError:
            log.debug("Poll was cancelled because the synchronizer is stopping")
            return False
        except ApiError as e:
            log.warning(http_error_message(e.status, "polling request", self._config.reload_interval > 0) + ": " + e.message)
            return False
        except Exception as e:
            log.exception('Error: Exception encountered when updating flags. %s' % e)
            return False

        data = build_snapshot(self._config.feature_flag_section, entries)
        with self._publish_lock:
            if stopped.is_set():
                log.debug("Discarding poll result because the synchronizer was stopped")
                return False
            if generation < self._published_generation:
                log.debug("Discarding stale poll result (generation %d < %d)", generation, self._published_generation)
                return False
            self._published_generation = generation
            self._store.replace(data)

        if not self._ready.is_set():
            log.info("PollingSynchronizer initialized ok")
            self._ready.set()
        return True


class NullUpdateProcessor(UpdateProcessor):
    """
    Used in offline mode: never fetches, and reports itself initialized immediately.
    """

    def __init__(self, ready: Optional[Event] = None):
        self._ready = ready or Event()
        self._ready.set()

    def initialized(self) -> bool:
        return True
