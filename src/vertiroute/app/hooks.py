# app/hooks.py
from typing import Protocol


class EngineHooks(Protocol):
    def built(self, *, name, nodes, edges, path_finder): ...
    def mutation(self, op: str, **kw): ...
    def query_start(self, op: str, **kw): ...
    def query_end(self, op: str, *, ms, **kw): ...
    def error(self, op: str, *, exc: BaseException, **kw): ...


class NoopHooks:
    def built(self, **_):
        pass

    def mutation(self, *_, **__):
        pass

    def query_start(self, *_, **__):
        pass

    def query_end(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass
