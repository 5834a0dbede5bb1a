"""Tests for logging setup."""

import json
import logging

import pytest

from parcel_nfts.utils.logging_config import StructuredFormatter, get_logger, setup_logging


@pytest.mark.unit
class TestLoggingConfig:

    def test_structured_formatter_adds_service_fields(self):
        formatter = StructuredFormatter('%(asctime)s %(name)s %(levelname)s %(message)s')
        record = logging.LogRecord("parcel_nfts.core.bundle", logging.INFO, __file__, 1, "mint: done!", None, None)
        record.campaign = '["Test Collection", "TEST"]'

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "mint: done!"
        assert payload["service"] == "parcel-nfts"
        assert payload["campaign"] == '["Test Collection", "TEST"]'
        assert "timestamp" in payload

    def test_setup_logging_writes_json_file(self, temp_dir):
        log_file = temp_dir / "logs" / "parcel.log"
        setup_logging(log_level="DEBUG", log_format="json", log_file=str(log_file))

        logging.getLogger("parcel_nfts.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = log_file.read_text().strip().splitlines()
        assert json.loads(lines[-1])["message"] == "hello"
        assert logging.getLogger().level == logging.DEBUG

    def test_get_logger(self):
        assert get_logger("parcel_nfts.test") is not None
