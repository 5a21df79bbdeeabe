import json
import logging

from ops.structured_logger import JsonFormatter, setup_logging


def test_json_formatter_merges_extra():
    record = logging.LogRecord("cpsms.client", logging.INFO, __file__, 1, "sms_send_result", None, None)
    record.extra = {"event": "sms_send_result", "dest": "...5678"}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["severity"] == "INFO"
    assert payload["logger"] == "cpsms.client"
    assert payload["dest"] == "...5678"


def test_setup_logging_quiets_httpx():
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    try:
        setup_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:], level = saved
        root.setLevel(level)


def test_password_is_redacted_from_formatted_output():
    record = logging.LogRecord(
        "cpsms.client", logging.WARNING, __file__, 1,
        "GET https://www.cpsms.dk/sms/?username=U&password=hunter2&recipient=12345678", None, None,
    )
    record.extra = {"url": "/sms/?password=hunter2&message=hi"}
    out = JsonFormatter().format(record)
    assert "hunter2" not in out
    payload = json.loads(out)
    assert payload["message"].endswith("username=U&password=***&recipient=12345678")
    assert payload["url"] == "/sms/?password=***&message=hi"
