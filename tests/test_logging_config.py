"""Tests for logging setup and request IDs."""

import io
import json
import logging

import pytest
from httpx import AsyncClient

from linkmeta.config import settings
from linkmeta.core.logging_config import RequestIDFilter, configure_logging
from linkmeta.middleware.request_id import request_id_var


class TestConfigureLogging:
    def test_json_lines_carry_request_id(self, restore_logging):
        stream = io.StringIO()
        configure_logging("json", "INFO", stream=stream)
        token = request_id_var.set("req-42")
        try:
            logging.getLogger("linkmeta.test").info("fetched %s", "https://example.com/")
        finally:
            request_id_var.reset(token)

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["message"] == "fetched https://example.com/"
        assert line["level"] == "INFO"
        assert line["logger"] == "linkmeta.test"
        assert line["request_id"] == "req-42"

    def test_text_format_and_level(self, restore_logging):
        stream = io.StringIO()
        configure_logging("text", "warning", stream=stream)
        log = logging.getLogger("linkmeta.test")
        log.info("hidden")
        log.warning("shown")
        output = stream.getvalue()
        assert "hidden" not in output
        assert "[-] shown" in output

    def test_httpx_quieted(self, restore_logging):
        configure_logging("text", "DEBUG", stream=io.StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_filter_outside_request(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIDFilter().filter(record) is True
        assert record.request_id == "-"


class TestRequestIdHeader:
    @pytest.mark.asyncio
    async def test_generated_when_absent(self, client: AsyncClient):
        resp = await client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 32

    @pytest.mark.asyncio
    async def test_unsafe_incoming_id_replaced(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        assert resp.headers["X-Request-ID"] != "bad id with spaces"


class TestSettings:
    def test_defaults(self):
        assert settings.DEFAULT_TIMEOUT == 8000
        assert settings.MAX_TIMEOUT == 15000
        assert settings.MAX_REDIRECTS == 10

    def test_default_timeout_clamped(self):
        from linkmeta.config import Settings

        s = Settings(DEFAULT_TIMEOUT=60000, MAX_TIMEOUT=15000)
        assert s.DEFAULT_TIMEOUT == 15000
