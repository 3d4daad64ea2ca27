"""
This submodule contains interfaces for the components of the SDK.

They may be useful in writing new implementations of these components, or for testing.
"""

from abc import ABCMeta, abstractmethod
from threading import Event
from typing import List, Optional

from flareclient.context import EvaluationContext
from flareclient.impl.model import FlagEntry


class FlagRequester(metaclass=ABCMeta):
    """
    Calls the Flare evaluation service.

    Implementations must surface every failure as one of the types in :mod:`flareclient.errors`:
    :class:`~flareclient.errors.NetworkError` for transport problems,
    :class:`~flareclient.errors.ApiError` for non-2xx responses,
    :class:`~flareclient.errors.ParseError` for malformed payloads,
    :class:`~flareclient.errors.InvalidArgumentError` for unusable arguments, and
    :class:`~flareclient.errors.CancelledError` when ``cancel`` is set.
    """

    @abstractmethod
    def fetch_all(self, scope: str, cancel: Optional[Event] = None) -> List[FlagEntry]:
        """
        Evaluates every flag of a scope.

        :param scope: the scope to evaluate
        :param cancel: an optional signal that aborts the call when set
        :return: the evaluations, in the order the service returned them
        """

    @abstractmethod
    def fetch_one(self, flag_key: str, context: Optional[EvaluationContext], cancel: Optional[Event] = None) -> FlagEntry:
        """
        Evaluates a single flag.

        :param flag_key: the key of the flag; must not be empty
        :param context: the evaluation context; must resolve to a scope
        :param cancel: an optional signal that aborts the call when set
        """


class UpdateProcessor(metaclass=ABCMeta):
    """
    Keeps a snapshot store up to date with the service.
    """

    def start(self):
        """
        Starts the processor. This should return immediately; work happens on a worker thread.
        """

    def stop(self):
        """
        Stops the processor. No further updates are published after this returns.
        """

    @abstractmethod
    def initialized(self) -> bool:
        """
        Returns whether the processor has published at least one complete snapshot.
        """
