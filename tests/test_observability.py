import io
import logging

import httpx
import pytest
import respx
from httpx import Response
from kong_admin import KongClient
from kong_admin.core.errors import KongClientError
from kong_admin.core.logging import LogfmtFormatter, setup_logging
from kong_admin.core.observability import OBSERVABILITY_LOGGER, log_event

BASE = "http://kong.test:8001"


def _client() -> KongClient:
    return KongClient(base_url=BASE, status_url="http://kong.test:8007")


@pytest.mark.asyncio
async def test_op_call_logged_on_success(caplog):
    async with respx.mock:
        respx.get(f"{BASE}/ws1/services").mock(return_value=Response(200, json={}))
        async with _client() as client:
            client.set_workspace("ws1")
            with caplog.at_level(logging.DEBUG, logger=OBSERVABILITY_LOGGER):
                await client.do(client.new_request("GET", "/services"))

    record = next(r for r in caplog.records if r.getMessage() == "op_call")
    assert record.method == "GET"
    assert record.endpoint == "/ws1/services"
    assert record.status == 200
    assert record.workspace == "ws1"
    assert record.duration_ms >= 0


@pytest.mark.asyncio
async def test_op_call_logged_on_exception(caplog):
    async with respx.mock:
        respx.get(f"{BASE}/status").mock(side_effect=httpx.ConnectTimeout("boom"))
        async with _client() as client:
            with caplog.at_level(logging.DEBUG, logger=OBSERVABILITY_LOGGER):
                with pytest.raises(KongClientError):
                    await client.do(client.new_request("GET", "/status"))

    record = next(r for r in caplog.records if r.getMessage() == "op_call")
    assert record.status == "exception"
    assert record.error_type == "ConnectTimeout"


def test_log_event_skips_when_disabled(caplog):
    logger = logging.getLogger("kong_admin.tests.quiet")
    with caplog.at_level(logging.INFO, logger="kong_admin.tests.quiet"):
        log_event("op_call", logger, method="GET")
    assert not caplog.records


def test_log_event_drops_reserved_keys(caplog):
    logger = logging.getLogger("kong_admin.tests.events")
    with caplog.at_level(logging.DEBUG, logger="kong_admin.tests.events"):
        log_event("registered", logger, name="clobber", entity="dao")
    record = caplog.records[-1]
    assert record.entity == "dao"
    assert record.name == "kong_admin.tests.events"


def test_logfmt_formatter_renders_extras():
    record = logging.LogRecord(
        "kong_admin.observability", logging.DEBUG, __file__, 1, "op_call", None, None
    )
    record.method = "GET"
    record.endpoint = "/services"
    record.status = 200
    record.workspace = ""
    record.duration_ms = 3
    line = LogfmtFormatter().format(record)
    assert line == (
        'level=debug logger=kong_admin.observability event=op_call method=GET '
        'endpoint=/services workspace="" status=200 duration_ms=3'
    )


def test_logfmt_quotes_spaces_and_booleans():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello world", None, None)
    record.entity = True
    assert LogfmtFormatter().format(record) == (
        'level=info logger=x event="hello world" entity=true'
    )


def test_setup_logging_installs_single_handler():
    stream = io.StringIO()
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("debug", stream)
        setup_logging("debug", stream)
        assert len(root.handlers) == 1
        logging.getLogger("kong_admin.tests.setup").info("ready")
        assert "level=info logger=kong_admin.tests.setup event=ready" in stream.getvalue()
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
