# io/engine_logging.py
import json
import logging
import sys

from vertiroute.app.hooks import NoopHooks


def _default_json_logger(name="vertiroute", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class EngineLogging(NoopHooks):
    """
    One place to shape and emit structured logs for engine mutations and queries.
    """

    def __init__(
        self,
        name: str = "vertiroute",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
    ):
        self.name, self.debug, self.sample_every = name, debug, max(1, sample_every)
        self.log = logger or _default_json_logger(level=level)
        self._mutations = 0

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"engine": self.name}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    # --------------------------------------------------------

    def built(self, *, name, nodes, edges, path_finder):
        self._emit("INFO", "engine_built", name=name, nodes=nodes, edges=edges, path_finder=path_finder)

    def mutation(self, op: str, **kw):
        self._mutations += 1
        if self.debug and (self._mutations % self.sample_every) == 0:
            self._emit("DEBUG", op, seq=self._mutations, **kw)

    def query_start(self, op: str, **kw):
        if self.debug:
            self._emit("DEBUG", f"{op}_start", **kw)

    def query_end(self, op: str, *, ms, **kw):
        if self.debug:
            self._emit("DEBUG", f"{op}_end", ms=round(ms, 3), **kw)

    def error(self, op: str, *, exc: BaseException, **kw):
        self._emit("ERROR", "engine_error", op=op, error=type(exc).__name__, detail=str(exc), **kw)
