# runtime/locking.py
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from vertiroute.app.engine import RouterEngine


class ReadWriteLock:
    """Many readers or one writer. Waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class LockedEngine:
    """RouterEngine behind a ReadWriteLock: one lock section per call."""

    _WRITES = frozenset(
        {
            "add_node",
            "add_nodes",
            "remove_node",
            "set_node_status",
            "add_edge",
            "add_edges",
            "remove_edge",
            "update_weight",
            "connect_within",
            "load_inventory",
        }
    )

    def __init__(self, engine: RouterEngine | None = None, lock: ReadWriteLock | None = None):
        self.engine = engine or RouterEngine()
        self.lock = lock or ReadWriteLock()

    def __getattr__(self, name: str):
        if not callable(getattr(type(self.engine), name, None)):
            with self.lock.read():  # properties and plain attributes
                return getattr(self.engine, name)
        attr = getattr(self.engine, name)
        section = self.lock.write if name in self._WRITES else self.lock.read

        def locked(*args, **kwargs):
            with section():
                return attr(*args, **kwargs)

        return locked
