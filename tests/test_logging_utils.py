import json

import cellfib.logging_utils as logging_utils


def test_key_value_format(monkeypatch, capsys):
    monkeypatch.setattr(logging_utils, "JSON_MODE", False)
    monkeypatch.setattr(logging_utils, "CURRENT_LEVEL", 10)
    logging_utils.get_logger("cellfib.test").info(event="refresh", updated="2 cells", partition=None)
    out = capsys.readouterr().out.strip()
    assert out.startswith("level=info ts=")
    assert "event=refresh" in out
    assert "updated=2_cells" in out
    assert "partition=" not in out
    assert "logger=cellfib.test" in out


def test_json_mode(monkeypatch, capsys):
    monkeypatch.setattr(logging_utils, "JSON_MODE", True)
    monkeypatch.setattr(logging_utils, "CURRENT_LEVEL", 10)
    logging_utils.get_logger("cellfib.test").warn(event="resolve_failed", count=3)
    rec = json.loads(capsys.readouterr().out.strip())
    assert rec["level"] == "warn"
    assert rec["event"] == "resolve_failed"
    assert rec["count"] == 3


def test_level_threshold_and_stderr(monkeypatch, capsys):
    monkeypatch.setattr(logging_utils, "JSON_MODE", False)
    monkeypatch.setattr(logging_utils, "CURRENT_LEVEL", 30)
    log = logging_utils.get_logger("cellfib.test")
    log.info(event="hidden")
    log.error(event="shown")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "event=shown" in captured.err


def test_logger_cache_and_plural():
    assert logging_utils.get_logger("a") is logging_utils.get_logger("a")
    assert logging_utils.plural(1, "cell") == "1 cell"
    assert logging_utils.plural(3, "cell") == "3 cells"


def test_fields_keep_call_order_with_logger_last(monkeypatch, capsys):
    monkeypatch.setattr(logging_utils, "JSON_MODE", False)
    monkeypatch.setattr(logging_utils, "CURRENT_LEVEL", 10)
    logging_utils.get_logger("cellfib.test").info(event="pending_drained", partition="overworld-1")
    keys = [part.split("=", 1)[0] for part in capsys.readouterr().out.split()]
    assert keys == ["level", "ts", "event", "partition", "logger"]
