import time
from threading import Event, Thread
from typing import Callable, Optional

from flareclient.impl.util import log


class RepeatingTask:
    """
    Calls a callback on a worker thread at fixed wall-clock intervals.

    Invocations never overlap: the callback runs on a single thread. If an invocation runs past
    one or more scheduled times, those ticks are skipped and the next one happens at the next
    point of the original schedule. An interval of zero or less makes the task one-shot: the
    callback runs once and the thread exits.
    """

    def __init__(self, label: str, interval: float, initial_delay: float, callable: Callable):
        """
        Creates the task, but does not start the worker thread yet.

        :param interval: time in seconds between the starts of two invocations; zero for one-shot
        :param initial_delay: time in seconds to wait before the first invocation
        :param callable: the function to execute repeatedly
        """
        self.__interval = interval
        self.__initial_delay = initial_delay
        self.__action = callable
        self.__stop = Event()
        self.__thread = Thread(target=self._run, name=f"{label}.repeating")
        self.__thread.daemon = True

    @property
    def stopped(self) -> Event:
        """
        Set once :func:`stop` has been called; the callback may use it as a cancellation signal.
        """
        return self.__stop

    def start(self):
        """
        Starts the worker thread.
        """
        self.__thread.start()

    def stop(self):
        """
        Tells the worker thread to stop. It cannot be restarted after this.
        """
        self.__stop.set()

    def join(self, timeout: Optional[float] = None):
        if self.__thread.is_alive():
            self.__thread.join(timeout)

    def _run(self):
        if self.__initial_delay > 0:
            if self.__stop.wait(self.__initial_delay):
                return
        next_time = time.time()
        while not self.__stop.is_set():
            try:
                self.__action()
            except Exception as e:
                log.exception("Unexpected exception on worker thread: %s" % e)
            if self.__interval <= 0:
                return
            next_time += self.__interval
            now = time.time()
            if next_time <= now:
                skipped = int((now - next_time) // self.__interval) + 1
                next_time += skipped * self.__interval
                log.debug("Skipped %d scheduled run(s) because the previous run overran its interval", skipped)
            if self.__stop.wait(next_time - now):
                return
