import logging
from logging.handlers import RotatingFileHandler

import pytest

from crawlkit.configs import CrawlkitConfig
from crawlkit.ext_logging import RequestIdFilter, RequestIdFormatter, init_logging, request_id_var


def make_record() -> logging.LogRecord:
    return logging.LogRecord("crawlkit", logging.INFO, __file__, 1, "hello", None, None)


class TestInitLogging:
    @pytest.mark.usefixtures("restore_logging")
    def test_level_and_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "crawlkit.log"
        init_logging(CrawlkitConfig(LOG_LEVEL="WARNING", LOG_FILE=str(log_file), LOG_TZ=None))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
        assert all(isinstance(h.formatter, RequestIdFormatter) for h in root.handlers)
        assert log_file.parent.is_dir()

    @pytest.mark.usefixtures("restore_logging")
    def test_debug_forces_debug_level(self):
        init_logging(CrawlkitConfig(LOG_LEVEL="ERROR", DEBUG=True, LOG_TZ=None))
        assert logging.getLogger().level == logging.DEBUG

    @pytest.mark.usefixtures("restore_logging")
    def test_log_timezone(self):
        init_logging(CrawlkitConfig(LOG_TZ="Asia/Shanghai"))
        for handler in logging.getLogger().handlers:
            assert "converter" in vars(handler.formatter)


class TestRequestId:
    def test_filter_injects_request_id(self):
        token = request_id_var.set(42)
        try:
            record = make_record()
            assert RequestIdFilter().filter(record) is True
            assert record.request_id == 42
        finally:
            request_id_var.reset(token)

    def test_filter_outside_dispatch(self):
        record = make_record()
        RequestIdFilter().filter(record)
        assert record.request_id == ""

    def test_formatter_without_filter(self):
        formatter = RequestIdFormatter("%(request_id)s|%(message)s")
        assert formatter.format(make_record()) == "|hello"
