import base64
from unittest.mock import MagicMock

import httpx
import pytest

from parseable_client import (  # type: ignore[import]
  ConfigurationError,
  HttpTransport,
  JsonFormatter,
  Level,
  LogRecord,
  ParseableShipper,
  TransportError,
)

from conftest import RecordingTransport


HOST = "https://parseable.example.com"
STREAM = "test-stream"
USERNAME = "test-user"
PASSWORD = "test-password"
ENDPOINT = "https://parseable.example.com:8000/api/v1/ingest"


def _shipper(transport, **kwargs) -> ParseableShipper:
  return ParseableShipper(HOST, STREAM, USERNAME, PASSWORD, transport=transport, **kwargs)


def _record(level: Level, message: str = "msg") -> LogRecord:
  return LogRecord(channel="channel", level=level, message=message)


def test_constructor_sets_properties(transport):
  shipper = _shipper(transport)

  assert shipper.host == HOST
  assert shipper.stream == STREAM
  assert shipper.username == USERNAME
  assert shipper.password == PASSWORD
  assert shipper.port == 8000
  assert shipper.level is Level.DEBUG
  assert shipper.bubble is True
  assert shipper.transport is transport


def test_default_transport_and_formatter():
  shipper = ParseableShipper(HOST, STREAM, USERNAME, PASSWORD)

  assert isinstance(shipper.transport, HttpTransport)
  assert isinstance(shipper.formatter, JsonFormatter)


def test_trailing_slashes_are_stripped_from_host(transport):
  shipper = ParseableShipper("https://logs.example.com/", "app", "u", "p", port=8000, transport=transport)

  assert shipper.host == "https://logs.example.com"
  assert shipper.endpoint == "https://logs.example.com:8000/api/v1/ingest"

  shipper.deliver("{}")
  url, headers, _, _ = transport.calls[0]
  assert url == "https://logs.example.com:8000/api/v1/ingest"
  assert "Authorization: Basic dTpw" in headers


@pytest.mark.parametrize("host", ["http://h", "http://h/", "http://h///"])
def test_endpoint_has_single_slash_before_path(transport, host):
  shipper = ParseableShipper(host, "s", "u", "p", port=9000, transport=transport)
  assert shipper.endpoint == "http://h:9000/api/v1/ingest"


def test_deliver_sets_headers_in_order(transport):
  shipper = _shipper(transport)

  shipper.deliver('{"message":"test"}')

  assert len(transport.calls) == 1
  url, headers, body, options = transport.calls[0]
  expected_auth = base64.b64encode(f"{USERNAME}:{PASSWORD}".encode()).decode()
  assert url == ENDPOINT
  assert headers == [
    "Content-Type: application/json",
    f"X-P-Stream: {STREAM}",
    f"Authorization: Basic {expected_auth}",
  ]
  assert body == '{"message":"test"}'
  assert options is None


def test_basic_auth_has_no_newline_or_url_encoding(transport):
  shipper = ParseableShipper(HOST, STREAM, "user@example.com", "p&ss word/with+chars" * 5, transport=transport)

  auth = shipper.headers[2]
  token = auth[len("Authorization: Basic "):]
  assert "\n" not in auth
  assert base64.b64decode(token).decode() == "user@example.com:" + "p&ss word/with+chars" * 5


def test_deliver_discards_transport_response():
  transport = RecordingTransport(response="accepted")
  assert _shipper(transport).deliver("{}") is None


def test_handle_sends_formatted_record(transport):
  shipper = _shipper(transport)
  formatter = MagicMock()
  formatter.format.return_value = '{"message":"Test message","level":"error"}'
  shipper.formatter = formatter
  record = _record(Level.ERROR, "Test message")

  shipper.handle(record)

  formatter.format.assert_called_once_with(record)
  assert transport.calls[0][0] == ENDPOINT
  assert transport.calls[0][2] == '{"message":"Test message","level":"error"}'


def test_handle_does_not_filter_single_records_by_level(transport):
  shipper = _shipper(transport, level=Level.ERROR)
  record = _record(Level.DEBUG)

  assert shipper.is_handling(record) is False
  shipper.handle(record)

  assert len(transport.calls) == 1


@pytest.mark.parametrize("bubble, expected", [(True, False), (False, True)])
def test_handle_return_value_follows_bubble(transport, bubble, expected):
  shipper = _shipper(transport, bubble=bubble)
  assert shipper.handle(_record(Level.INFO)) is expected


def test_handle_batch_filters_records_by_level(transport):
  shipper = _shipper(transport, level=Level.INFO)
  formatter = MagicMock()
  formatter.format_batch.return_value = '{"batch":"test"}'
  shipper.formatter = formatter

  debug = _record(Level.DEBUG, "Debug message")
  info = _record(Level.INFO, "Info message")
  error = _record(Level.ERROR, "Error message")

  shipper.handle_batch([debug, info, error])

  formatter.format_batch.assert_called_once()
  (passed,), _ = formatter.format_batch.call_args
  assert list(passed) == [info, error]
  assert len(transport.calls) == 1
  assert transport.calls[0][0] == ENDPOINT
  assert transport.calls[0][2] == '{"batch":"test"}'


def test_handle_batch_preserves_order_of_kept_records(transport):
  shipper = _shipper(transport, level=Level.WARNING)
  formatter = MagicMock()
  formatter.format_batch.return_value = "[]"
  shipper.formatter = formatter
  records = [
    _record(Level.CRITICAL, "a"),
    _record(Level.INFO, "b"),
    _record(Level.WARNING, "c"),
    _record(Level.NOTICE, "d"),
    _record(Level.ERROR, "e"),
  ]

  shipper.handle_batch(records)

  (passed,), _ = formatter.format_batch.call_args
  assert [r.message for r in passed] == ["a", "c", "e"]


def test_handle_batch_below_minimum_makes_no_calls(transport):
  shipper = _shipper(transport, level=Level.INFO)
  formatter = MagicMock()
  shipper.formatter = formatter

  shipper.handle_batch([_record(Level.DEBUG)])

  formatter.format_batch.assert_not_called()
  assert transport.calls == []


def test_handle_batch_empty_sequence_makes_no_calls(transport):
  shipper = _shipper(transport)
  shipper.handle_batch([])
  assert transport.calls == []


def test_handle_batch_default_formatter_sends_json_array(transport):
  shipper = _shipper(transport, level="warning")

  shipper.handle_batch([_record(Level.INFO, "skip"), _record(Level.ERROR, "keep")])

  body = transport.calls[0][2]
  assert body.startswith("[") and body.endswith("]")
  assert '"message":"keep"' in body
  assert "skip" not in body


def test_transport_error_propagates_unchanged():
  error = TransportError("connection refused")
  shipper = _shipper(RecordingTransport(error=error), level=Level.INFO)

  with pytest.raises(TransportError) as single:
    shipper.handle(_record(Level.ERROR))
  assert single.value is error

  with pytest.raises(TransportError) as batch:
    shipper.handle_batch([_record(Level.ERROR)])
  assert batch.value is error


def test_processors_run_most_recent_first(transport):
  shipper = _shipper(transport)
  seen = []

  def first(record):
    seen.append("first")
    return record.model_copy(update={"extra": {**record.extra, "order": "first"}})

  def second(record):
    seen.append("second")
    return record.model_copy(update={"extra": {**record.extra, "host": "web-1"}})

  shipper.push_processor(first)
  shipper.push_processor(second)
  shipper.handle(_record(Level.INFO))

  assert seen == ["second", "first"]
  body = transport.calls[0][2]
  assert '"extra":{"host":"web-1","order":"first"}' in body

  assert shipper.pop_processor() is second
  assert shipper.pop_processor() is first
  with pytest.raises(IndexError):
    shipper.pop_processor()


def test_processors_only_see_batch_records_above_minimum(transport):
  shipper = _shipper(transport, level=Level.ERROR)
  seen = []
  shipper.push_processor(lambda r: seen.append(r.message) or r)

  shipper.handle_batch([_record(Level.INFO, "low"), _record(Level.ERROR, "high")])

  assert seen == ["high"]


def test_invalid_level_is_a_configuration_error(transport):
  with pytest.raises(ConfigurationError):
    _shipper(transport, level="verbose")


def test_transport_without_send_is_a_configuration_error():
  with pytest.raises(ConfigurationError):
    ParseableShipper(HOST, STREAM, USERNAME, PASSWORD, transport=object())


def test_push_non_callable_processor_is_rejected(transport):
  with pytest.raises(ConfigurationError):
    _shipper(transport).push_processor("not callable")


def test_non_ascii_stream_surfaces_as_transport_error():
  transport = HttpTransport(http_transport=httpx.MockTransport(lambda request: httpx.Response(200)))
  shipper = ParseableShipper(HOST, "flüsse", USERNAME, PASSWORD, transport=transport)

  with pytest.raises(TransportError):
    shipper.handle(_record(Level.ERROR))


def test_handle_batch_accepts_generators(transport):
  shipper = _shipper(transport, level=Level.ERROR)

  shipper.handle_batch(r for r in [_record(Level.DEBUG), _record(Level.INFO)])
  assert transport.calls == []

  shipper.handle_batch(r for r in [_record(Level.DEBUG), _record(Level.ERROR, "kept")])
  assert len(transport.calls) == 1
  assert '"message":"kept"' in transport.calls[0][2]
