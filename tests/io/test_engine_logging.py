# tests/io/test_engine_logging.py
import json
import logging

from vertiroute.io.engine_logging import EngineLogging, _default_json_logger


def _records(caplog, msg=None):
    return [r for r in caplog.records if msg is None or r.getMessage() == msg]


def test_json_formatter_merges_extra():
    logger = _default_json_logger("vertiroute.fmt_test", "DEBUG")
    rec = logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, "engine_built", None, None, extra={"extra": {"nodes": 3}}
    )
    payload = json.loads(logger.handlers[0].formatter.format(rec))
    assert payload == {"level": "INFO", "msg": "engine_built", "logger": "vertiroute.fmt_test", "nodes": 3}


def test_debug_records_only_when_enabled(caplog):
    caplog.set_level(logging.DEBUG, logger="vertiroute")
    quiet = EngineLogging(name="q", logger=logging.getLogger("vertiroute.quiet"))
    quiet.mutation("add_node", uid="A")
    quiet.query_start("shortest_path", source="A", target="B")
    quiet.query_end("shortest_path", ms=1.0, source="A", target="B")
    assert _records(caplog) == []

    loud = EngineLogging(name="l", debug=True, logger=logging.getLogger("vertiroute.loud"))
    loud.query_end("shortest_path", ms=1.23456, source="A", target="B")
    (rec,) = _records(caplog, "shortest_path_end")
    assert rec.levelno == logging.DEBUG
    assert rec.extra == {"engine": "l", "ms": 1.235, "source": "A", "target": "B"}


def test_mutations_are_sampled(caplog):
    caplog.set_level(logging.DEBUG, logger="vertiroute")
    hooks = EngineLogging(debug=True, sample_every=3, logger=logging.getLogger("vertiroute.sampled"))
    for i in range(7):
        hooks.mutation("add_node", uid=str(i))
    assert [r.extra["uid"] for r in _records(caplog, "add_node")] == ["2", "5"]


def test_errors_and_build_summary(caplog):
    caplog.set_level(logging.INFO, logger="vertiroute")
    hooks = EngineLogging(name="e", logger=logging.getLogger("vertiroute.errors"))
    hooks.error("add_edge", exc=KeyError("boom"), source="A", target="B")
    hooks.built(name="e", nodes=2, edges=1, path_finder="dijkstra")
    (err,) = _records(caplog, "engine_error")
    assert err.levelno == logging.ERROR
    assert err.extra["op"] == "add_edge"
    assert err.extra["error"] == "KeyError"
    (built,) = _records(caplog, "engine_built")
    assert built.extra["nodes"] == 2
