"""
This submodule exposes the flag snapshot as plain, read-only configuration.
"""

from collections.abc import Mapping
from threading import RLock
from typing import Callable, Iterator, List

from flareclient.impl.snapshot_store import Snapshot, SnapshotStore
from flareclient.impl.util import log


class FlagConfiguration(Mapping):
    """
    A case-insensitive, read-only view of the latest flag snapshot, keyed ``"{section}:{flagKey}"``.

    The view subscribes to a :class:`~flareclient.impl.snapshot_store.SnapshotStore` when it is
    created, so it holds the store's current snapshot immediately and follows every later
    update. Callbacks registered with :func:`on_reload` run after each update.
    ::

        flags = FlagConfiguration(client.snapshot_store, 'FeatureFlags')
        if flags.get_bool('new-ui'):
            ...
    """

    def __init__(self, store: SnapshotStore, section: str):
        self.__section = section
        self.__lock = RLock()
        self.__data = Snapshot()
        self.__reload_callbacks = []  # type: List[Callable[[], None]]
        self.__store = store
        store.add_listener(self._load)

    def _load(self, snapshot: Snapshot):
        with self.__lock:
            self.__data = snapshot
            callbacks = list(self.__reload_callbacks)
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                log.exception("Unexpected error in configuration reload callback: %s" % e)

    def on_reload(self, callback: Callable[[], None]):
        with self.__lock:
            self.__reload_callbacks.append(callback)

    def close(self):
        """
        Unsubscribes from the store. The view keeps the last snapshot it received.
        """
        self.__store.remove_listener(self._load)

    def get_bool(self, flag_key: str, default: bool = False) -> bool:
        """
        Reads flag ``flag_key`` of this view's section as a boolean.

        Returns ``default`` when the flag is absent from the snapshot.
        """
        value = self.__data.get('%s:%s' % (self.__section, flag_key))
        if value is None:
            return default
        return value.lower() == 'true'

    def __getitem__(self, key: str) -> str:
        return self.__data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.__data)

    def __len__(self) -> int:
        return len(self.__data)
