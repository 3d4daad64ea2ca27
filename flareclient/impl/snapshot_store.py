from collections.abc import Mapping
from threading import RLock
from typing import Callable, Dict, Iterator, List, Optional

from flareclient.impl.util import log


class Snapshot(Mapping):
    """
    An immutable mapping of namespaced flag keys to ``"true"``/``"false"``.

    Key lookup ignores case, as configuration keys do; iteration yields the keys as they were
    published. A snapshot compares equal to any mapping with the same items.
    """

    __slots__ = ['_data', '_index']

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self._data = {}  # type: Dict[str, str]
        self._index = {}  # type: Dict[str, str]
        for key, value in (data or {}).items():
            folded = key.casefold()
            previous = self._index.get(folded)
            if previous is not None:
                del self._data[previous]
            self._index[folded] = key
            self._data[key] = value

    def __getitem__(self, key: str) -> str:
        original = self._index.get(key.casefold()) if isinstance(key, str) else None
        if original is None:
            raise KeyError(key)
        return self._data[original]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def with_value(self, key: str, value: str) -> 'Snapshot':
        data = dict(self._data)
        original = self._index.get(key.casefold())
        if original is not None:
            del data[original]
        data[key] = value
        return Snapshot(data)

    def __repr__(self) -> str:
        return "Snapshot(%r)" % self._data


class SnapshotStore:
    """
    Holds the current flag snapshot and tells listeners about every change.

    The snapshot itself is never mutated: :func:`replace` and :func:`set_value` build a new
    :class:`Snapshot` and swap the reference, so a reader always sees one complete snapshot.
    Mutations and the notifications that follow them run under one lock, so notifications from
    two updates never interleave, and a listener being added receives its first snapshot
    strictly before or strictly after any concurrent update. Listeners are called synchronously
    on the thread that made the change, in the order they were added.
    """

    def __init__(self):
        self.__lock = RLock()
        self.__listeners = []  # type: List[Callable[[Snapshot], None]]
        self.__snapshot = Snapshot()

    @property
    def snapshot(self) -> Snapshot:
        return self.__snapshot

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.__snapshot.get(key, default)

    def add_listener(self, listener: Callable[[Snapshot], None]):
        """
        Registers a listener and immediately calls it with the current snapshot, even if empty.
        """
        with self.__lock:
            self.__listeners.append(listener)
            self.__call(listener, self.__snapshot)

    def remove_listener(self, listener: Callable[[Snapshot], None]):
        with self.__lock:
            try:
                self.__listeners.remove(listener)
            except ValueError:
                pass  # removing a listener that wasn't in the list is a no-op

    def replace(self, data: Dict[str, str]):
        """
        Swaps in a whole new snapshot, then notifies every listener with it.
        """
        snapshot = data if isinstance(data, Snapshot) else Snapshot(data)
        with self.__lock:
            self.__snapshot = snapshot
            log.debug("Replaced flag snapshot with %d keys", len(snapshot))
            self.__notify(snapshot)

    def set_value(self, key: str, value: str):
        """
        Updates a single key, then notifies every listener with the whole snapshot.
        """
        with self.__lock:
            snapshot = self.__snapshot.with_value(key, value)
            self.__snapshot = snapshot
            self.__notify(snapshot)

    def __notify(self, snapshot: Snapshot):
        for listener in list(self.__listeners):
            self.__call(listener, snapshot)

    @staticmethod
    def __call(listener: Callable[[Snapshot], None], snapshot: Snapshot):
        try:
            listener(snapshot)
        except Exception as e:
            log.exception("Unexpected error in snapshot listener %r: %s" % (listener, e))
