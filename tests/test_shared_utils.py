"""Tests for the shared adapter, retry and logging utilities."""

import json
import logging
from unittest.mock import Mock, patch

import pytest
import requests

from shared.adapters.openrouter_adapter import OpenRouterAdapter, resolve_model_id
from shared.utils.logging import JSONFormatter, setup_logging
from shared.utils.retry import retry_with_backoff


class TestRetryWithBackoff:
    def test_retries_then_succeeds(self):
        sleep = Mock()
        calls = {"n": 0}

        @retry_with_backoff(max_retries=3, base_delay=1.0, exceptions=(ConnectionError,), sleep=sleep)
        def flaky():
            calls["n"] += 1
            if calls["n"] < 3:
                raise ConnectionError("try again")
            return "ok"

        assert flaky() == "ok"
        assert calls["n"] == 3
        assert sleep.call_count == 2

    def test_gives_up_after_max_retries(self):
        sleep = Mock()

        @retry_with_backoff(max_retries=2, exceptions=(ConnectionError,), sleep=sleep)
        def always_fails():
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            always_fails()
        assert sleep.call_count == 2

    def test_other_exceptions_not_retried(self):
        sleep = Mock()

        @retry_with_backoff(max_retries=3, exceptions=(ConnectionError,), sleep=sleep)
        def bad():
            raise KeyError("nope")

        with pytest.raises(KeyError):
            bad()
        sleep.assert_not_called()

    def test_honours_retry_after(self):
        sleep = Mock()
        response = Mock(status_code=429, headers={"Retry-After": "3"})
        error = requests.HTTPError("rate limited")
        error.response = response
        calls = {"n": 0}

        @retry_with_backoff(max_retries=1, base_delay=10.0, exceptions=(requests.HTTPError,), sleep=sleep)
        def limited():
            calls["n"] += 1
            if calls["n"] == 1:
                raise error
            return "ok"

        assert limited() == "ok"
        sleep.assert_called_once_with(3.0)


class TestJSONFormatter:
    def test_formats_extra_fields(self):
        record = logging.makeLogRecord({
            "name": "puzzleround.test",
            "levelname": "INFO",
            "msg": "Group %s solved",
            "args": ("A",),
            "session": 3,
        })
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "Group A solved"
        assert entry["logger"] == "puzzleround.test"
        assert entry["session"] == 3

    def test_setup_logging_writes_file(self, tmp_path):
        log_file = setup_logging(tmp_path / "logs")
        logging.getLogger("puzzleround.test").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        lines = log_file.read_text().strip().splitlines()
        assert json.loads(lines[-1])["message"] == "hello"


class TestOpenRouterAdapter:
    """Test cases for the adapter with requests mocked out."""

    def test_missing_key(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="OPENROUTER_API_KEY"):
                OpenRouterAdapter()

    def test_resolve_model_id(self):
        mappings = {"non_thinking": {"gemini-flash": "google/gemini-2.5-flash"}}
        assert resolve_model_id("gemini-flash", mappings) == "google/gemini-2.5-flash"
        assert resolve_model_id("vendor/custom", mappings) == "vendor/custom"

    def test_call_model_with_metadata(self):
        response = Mock(ok=True)
        response.json.return_value = {
            "choices": [{"message": {"content": '{"theme": "x"}'}}],
            "usage": {"prompt_tokens": 50, "completion_tokens": 10, "total_tokens": 60, "cost": 0.001},
        }
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": "test_key"}):
            adapter = OpenRouterAdapter()
            with patch("shared.adapters.openrouter_adapter.requests.post", return_value=response) as post:
                content, metadata = adapter.call_model_with_metadata(
                    "gemini-flash", "make a puzzle", system_prompt="you are an editor", json_mode=True
                )

        assert content == '{"theme": "x"}'
        assert metadata["model_id"] == "google/gemini-2.5-flash"
        assert metadata["total_tokens"] == 60

        payload = post.call_args.kwargs["json"]
        assert payload["model"] == "google/gemini-2.5-flash"
        assert payload["response_format"] == {"type": "json_object"}
        assert payload["messages"][0] == {"role": "system", "content": "you are an editor"}
        assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer test_key"

    def test_null_message_and_usage(self):
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": "test_key"}):
            adapter = OpenRouterAdapter()
            body = {"choices": [{"message": None}], "usage": None}
            with patch("shared.adapters.openrouter_adapter.chat", return_value=body):
                content, metadata = adapter.call_model_with_metadata("gemini-flash", "make a puzzle")

        assert content == ""
        assert metadata["input_tokens"] == 0
        assert metadata["openrouter_cost"] == 0.0
