"""
Brief: Tests for navguard.config.logging_config.init_logging and formatters.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import logging.handlers
from pathlib import Path

from navguard.config.logging_config import (
    BracketLevelFormatter,
    SyslogFormatter,
    init_logging,
)


def test_init_logging_adds_stderr_handler():
    """
    Brief: init_logging configures the root logger with a stderr handler.

    Inputs:
      - cfg: minimal dict with level

    Outputs:
      - None: Asserts StreamHandler present and level applied
    """
    init_logging({"level": "debug"})
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(type(h) is logging.StreamHandler for h in root.handlers)


def test_init_logging_none_and_unknown_level():
    """
    Brief: Missing config or unknown level defaults to info.

    Inputs:
      - cfg: None and {"level": "loud"}

    Outputs:
      - None: Asserts INFO level
    """
    init_logging(None)
    assert logging.getLogger().level == logging.INFO
    init_logging({"level": "loud", "stderr": False})
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert not any(type(h) is logging.StreamHandler for h in root.handlers)


def test_init_logging_file_handler_writes(tmp_path):
    """
    Brief: init_logging creates the file handler and writes tagged entries.

    Inputs:
      - cfg: file path and level

    Outputs:
      - None: Asserts file created and contains message
    """
    log_path = tmp_path / "logs" / "navguard.log"
    init_logging({"level": "info", "stderr": False, "file": str(log_path)})
    logging.getLogger("navguard.test").info("file message")
    for h in logging.getLogger().handlers:
        h.flush()
    content = Path(log_path).read_text()
    assert "file message" in content
    assert "[info] navguard.test:" in content


def test_init_logging_syslog(monkeypatch):
    """
    Brief: init_logging attaches a syslog handler with address and facility.

    Inputs:
      - syslog: dict with address list and facility

    Outputs:
      - None: Asserts dummy handler arguments
    """
    created = {}

    class DummySysLogHandler(logging.Handler):
        LOG_USER = 8
        LOG_LOCAL0 = 128

        def __init__(self, address=None, facility=None):
            super().__init__()
            created["address"] = address
            created["facility"] = facility

        def setFormatter(self, fmt):
            created["formatter"] = fmt

        def emit(self, record):
            pass

    monkeypatch.setattr(logging.handlers, "SysLogHandler", DummySysLogHandler)
    init_logging(
        {
            "stderr": False,
            "syslog": {"address": ["127.0.0.1", "514"], "facility": "local0", "tag": "ng"},
        }
    )
    assert created["address"] == ("127.0.0.1", 514)
    assert created["facility"] == 128
    assert isinstance(created["formatter"], SyslogFormatter)
    assert created["formatter"].tag == "ng"


def test_formatters_render_level_tags():
    """
    Brief: Formatters add bracketed level tags; bracket formatter adds UTC time.

    Inputs:
      - None

    Outputs:
      - None: Asserts formatted strings
    """
    record = logging.LogRecord("navguard", logging.WARNING, __file__, 1, "hi %s", ("x",), None)
    record.created = 0
    text = BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(message)s").format(record)
    assert text == "1970-01-01T00:00:00Z [warn] hi x"
    assert SyslogFormatter().format(record) == "navguard: [warn] navguard: hi x"
