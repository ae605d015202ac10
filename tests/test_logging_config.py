"""Tests for logging setup, context fields and JSON output.

Run: pytest tests/test_logging_config.py -v
"""

import json
import logging

import pytest

from themeshot.utils import logging_config
from themeshot.utils.logging_config import (
    ContextFormatter,
    pop_context,
    push_context,
    setup_logging,
    theme_context,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging() so tests don't leak handlers or context."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    logging_config._configured = False
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    pop_context()
    logging.captureWarnings(False)
    logging_config._configured = False


def ours(handlers):
    return [h for h in handlers if isinstance(h.formatter, ContextFormatter)]


def format_record(formatter, msg="hello", level=logging.INFO):
    record = logging.LogRecord("themeshot.test", level, __file__, 1, msg, None, None)
    return formatter.format(record)


class TestSetup:
    def test_idempotent(self):
        """Calling setup twice leaves exactly one console handler."""
        setup_logging(color=False)
        setup_logging(color=False)
        assert len(ours(logging.getLogger().handlers)) == 1

    def test_level(self):
        setup_logging("warning", color=False)
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "pipeline.log"
        handlers = setup_logging(log_file=str(log_file), to_stderr=False)
        assert len(handlers) == 1
        logging.getLogger("themeshot.test").info("written")
        handlers[0].flush()
        assert "written" in log_file.read_text()

    def test_unknown_rotation(self, tmp_path):
        with pytest.raises(ValueError):
            setup_logging(log_file=str(tmp_path / "x.log"), rotate={"mode": "weekly"}, to_stderr=False)

    def test_initial_context(self):
        setup_logging(color=False, context={"command": "render"})
        line = format_record(ContextFormatter("human", use_color=False))
        assert "command=render" in line


class TestContext:
    def test_theme_context_restores(self):
        push_context(command="compare")
        formatter = ContextFormatter("human", use_color=False)
        with theme_context("ocean-dark"):
            assert "command=compare theme=ocean-dark |" in format_record(formatter)
        line = format_record(formatter)
        assert "theme=" not in line
        assert "command=compare" in line

    def test_theme_context_restores_on_error(self):
        formatter = ContextFormatter("human", use_color=False)
        with pytest.raises(RuntimeError):
            with theme_context("broken"):
                raise RuntimeError("boom")
        assert "theme=" not in format_record(formatter)

    def test_pop_selected_keys(self):
        push_context(command="all", run="7")
        pop_context(["run"])
        line = format_record(ContextFormatter("human", use_color=False))
        assert "command=all" in line
        assert "run=" not in line

    def test_current_context_is_a_copy(self):
        pop_context()
        push_context(command="render")
        snapshot = logging_config.current_context()
        snapshot["command"] = "changed"
        assert logging_config.current_context() == {"command": "render"}

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            ContextFormatter("xml")


class TestJsonFormat:
    def test_json_fields(self):
        formatter = ContextFormatter("json", use_color=False)
        with theme_context("ocean-dark"):
            data = json.loads(format_record(formatter, "Rendered"))
        assert data["msg"] == "Rendered"
        assert data["lvl"] == "INFO"
        assert data["theme"] == "ocean-dark"
        assert data["logger"] == "themeshot.test"

    def test_json_file(self, tmp_path):
        log_file = tmp_path / "pipeline.jsonl"
        (handler,) = setup_logging(log_file=str(log_file), json=True, to_stderr=False)
        with theme_context("desert"):
            logging.getLogger("themeshot.test").warning("%d%% differ", 3)
        handler.flush()
        data = json.loads(log_file.read_text().splitlines()[-1])
        assert data["msg"] == "3% differ"
        assert data["theme"] == "desert"
