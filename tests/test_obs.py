import json

import pytest

from core.json_utils import parse_json_object
from core.obs import JsonStdoutLogger, Span, bind_log_context, current_log_context


class _Bad(RuntimeError):
    pass


def test_bound_context_is_merged_into_records(capsys) -> None:
    logger = JsonStdoutLogger(service="svc", env="test")
    with bind_log_context(req_id="r-1"):
        with bind_log_context(run_id="x"):
            logger.info("thing.happened", size=3)
        assert current_log_context() == {"req_id": "r-1"}
    logger.info("after")

    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert lines[0]["req_id"] == "r-1"
    assert lines[0]["run_id"] == "x"
    assert lines[0]["size"] == 3
    assert lines[0]["service"] == "svc"
    assert "req_id" not in lines[1]


def test_logger_appends_to_file(tmp_path, capsys) -> None:
    path = tmp_path / "logs" / "svc.log"
    JsonStdoutLogger(service="svc", log_path=path).warn("disk.event", ok=True)
    capsys.readouterr()
    record = json.loads(path.read_text(encoding="utf-8").strip())
    assert record["level"] == "warn"
    assert record["event"] == "disk.event"


def test_span_logs_error_and_reraises(capsys) -> None:
    logger = JsonStdoutLogger(service="svc")
    with pytest.raises(ValueError):
        with Span(logger, "work", {"k": 1}):
            raise ValueError("nope")
    captured = capsys.readouterr()
    assert '"event": "work.start"' in captured.out
    assert '"event": "work.error"' in captured.err


def test_parse_json_object_variants() -> None:
    assert parse_json_object('```json\n{"a": 1}\n```', _Bad) == {"a": 1}
    assert parse_json_object('Sure! {"a": {"b": 2}} Hope that helps.', _Bad) == {"a": {"b": 2}}
    with pytest.raises(_Bad):
        parse_json_object("[1, 2]", _Bad)
    with pytest.raises(_Bad):
        parse_json_object("no braces", _Bad)
    with pytest.raises(_Bad):
        parse_json_object("{broken", _Bad)
