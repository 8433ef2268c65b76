from __future__ import annotations

import base64
import logging
from typing import Callable, Iterable, List, Optional

from .errors import ConfigurationError
from .formatter import Formatter, JsonFormatter
from .models import Level, LevelLike, LogRecord
from .transport import HttpTransport, Transport

INGESTION_PATH = "api/v1/ingest"

Processor = Callable[[LogRecord], LogRecord]

_logger = logging.getLogger(__name__)


class ParseableShipper:
  """
  Formats log records and POSTs them to a Parseable ingestion endpoint.

  Stream identity, credentials and the minimum level are fixed at
  construction. Every ``handle``/``handle_batch`` call performs at most one
  blocking ``transport.send``; nothing is buffered between calls.

  Thread safety of a shared instance is whatever the injected transport
  provides. The default ``HttpTransport`` keeps no state between calls.
  """

  def __init__(
    self,
    host: str,
    stream: str,
    username: str,
    password: str,
    port: int = 8000,
    level: LevelLike = Level.DEBUG,
    bubble: bool = True,
    transport: Optional[Transport] = None,
    formatter: Optional[Formatter] = None,
  ) -> None:
    if transport is not None and not callable(getattr(transport, "send", None)):
      raise ConfigurationError(
        f"transport must provide a callable send(), got {type(transport).__name__}"
      )

    self._host = host.rstrip("/")
    self._stream = stream
    self._username = username
    self._password = password
    self._port = port
    self._level = Level.coerce(level)
    self._bubble = bubble
    self._transport: Transport = transport if transport is not None else HttpTransport()
    self._formatter = formatter
    self._processors: List[Processor] = []

  @property
  def host(self) -> str:
    return self._host

  @property
  def port(self) -> int:
    return self._port

  @property
  def stream(self) -> str:
    return self._stream

  @property
  def username(self) -> str:
    return self._username

  @property
  def password(self) -> str:
    return self._password

  @property
  def level(self) -> Level:
    return self._level

  @property
  def bubble(self) -> bool:
    return self._bubble

  @property
  def transport(self) -> Transport:
    return self._transport

  @property
  def formatter(self) -> Formatter:
    if self._formatter is None:
      self._formatter = JsonFormatter()
    return self._formatter

  @formatter.setter
  def formatter(self, formatter: Formatter) -> None:
    self._formatter = formatter

  @property
  def endpoint(self) -> str:
    """Ingestion URL, ``{host}:{port}/api/v1/ingest``."""
    return f"{self._host}:{self._port}/{INGESTION_PATH}"

  @property
  def headers(self) -> List[str]:
    credentials = f"{self._username}:{self._password}".encode("utf-8")
    return [
      "Content-Type: application/json",
      f"X-P-Stream: {self._stream}",
      f"Authorization: Basic {base64.b64encode(credentials).decode('ascii')}",
    ]

  def is_handling(self, record: LogRecord) -> bool:
    return record.level >= self._level

  def push_processor(self, processor: Processor) -> None:
    """Add a record processor; the most recently pushed runs first."""
    if not callable(processor):
      raise ConfigurationError("Processors must be callable")
    self._processors.insert(0, processor)

  def pop_processor(self) -> Processor:
    if not self._processors:
      raise IndexError("pop_processor() called on an empty processor stack")
    return self._processors.pop(0)

  def handle(self, record: LogRecord) -> bool:
    """
    Format and ship one record.

    The minimum level is not consulted here; single records are expected
    to be filtered upstream (see ``is_handling``).

    Returns:
      True if the record should not propagate to further handlers
    """
    record = self._process(record)
    self.deliver(self.formatter.format(record))
    return not self._bubble

  def handle_batch(self, records: Iterable[LogRecord]) -> None:
    """
    Ship every record at or above the minimum level in a single request.

    When nothing survives the filter, neither the formatter nor the
    transport is called.
    """
    records = list(records)
    kept = [record for record in records if record.level >= self._level]
    if not kept:
      _logger.debug("Dropped batch of %d record(s) below %s", len(records), self._level.name)
      return

    kept = [self._process(record) for record in kept]
    self.deliver(self.formatter.format_batch(kept))

  def deliver(self, payload: str) -> None:
    """POST an already formatted payload; the response body is discarded."""
    self._transport.send(self.endpoint, self.headers, payload)

  def close(self) -> None:
    """Nothing to release; no connection outlives a call."""

  def _process(self, record: LogRecord) -> LogRecord:
    for processor in self._processors:
      record = processor(record)
    return record

  def __repr__(self) -> str:
    return (
      f"{type(self).__name__}(endpoint={self.endpoint!r}, stream={self._stream!r}, "
      f"level={self._level.name})"
    )
