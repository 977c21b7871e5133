import io
import logging

from ukcgt.logging import ProfessionalFormatter, configure_logging


def test_formatter_uses_short_level_names():
    record = logging.LogRecord("ukcgt.x", logging.WARNING, __file__, 1, "hello %s", ("pool",), None)
    line = ProfessionalFormatter().format(record)
    assert " | WRN | ukcgt.x | hello pool" in line


def test_configure_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers = []
    try:
        stream = io.StringIO()
        configure_logging(level=logging.INFO, stream=stream)
        configure_logging(level=logging.DEBUG, stream=stream)
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

        logging.getLogger("ukcgt.test").info("matched")
        assert "| INF | ukcgt.test | matched" in stream.getvalue()
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
