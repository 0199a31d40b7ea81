"""Tests for the retrying, caching HTTP helper."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from bomalign.common import http_client


def make_response(status=200, text="ok"):
    res = MagicMock()
    res.status_code = status
    res.text = text
    res.headers = {"Content-Type": "text/xml"}
    return res


@pytest.fixture(autouse=True)
def fresh_cache():
    http_client.clear_cache()
    with patch("bomalign.common.http_client.time.sleep"):
        yield
    http_client.clear_cache()


@patch("bomalign.common.http_client.requests.get")
def test_success_is_cached(mock_get):
    mock_get.return_value = make_response(200, "<metadata/>")
    first = http_client.robust_get("https://repo.example/a")
    second = http_client.robust_get("https://repo.example/a")
    assert first == second == (200, {"Content-Type": "text/xml"}, "<metadata/>")
    assert mock_get.call_count == 1


@patch("bomalign.common.http_client.requests.get")
def test_not_found_is_returned_not_retried(mock_get):
    mock_get.return_value = make_response(404, "")
    status, _, _ = http_client.robust_get("https://repo.example/missing")
    assert status == 404
    assert mock_get.call_count == 1


@patch("bomalign.common.http_client.requests.get")
def test_server_errors_and_timeouts_are_retried(mock_get):
    mock_get.side_effect = [requests.Timeout(), make_response(503, ""), make_response(200, "ok")]
    status, _, text = http_client.robust_get("https://repo.example/flaky")
    assert (status, text) == (200, "ok")
    assert mock_get.call_count == 3


@patch("bomalign.common.http_client.requests.get")
def test_exhausted_retries_report_status_zero(mock_get):
    mock_get.side_effect = requests.ConnectionError("refused")
    status, headers, text = http_client.robust_get("https://repo.example/down")
    assert status == 0
    assert headers == {}
    assert "refused" in text
    assert mock_get.call_count == http_client.Constants.HTTP_RETRY_MAX
