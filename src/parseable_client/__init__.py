"""
parseable_client

Ships structured log records to a Parseable ingestion endpoint over a
pluggable HTTP transport, with batching and minimum-level filtering.
"""

from .config import ClientConfig
from .errors import ConfigurationError, ParseableError, TransportError
from .formatter import Formatter, JsonFormatter
from .logging_setup import ParseableHandler, setup_logging
from .models import Level, LogRecord
from .shipper import ParseableShipper
from .transport import HttpTransport, Transport

__all__ = [
  "ClientConfig",
  "ConfigurationError",
  "Formatter",
  "HttpTransport",
  "JsonFormatter",
  "Level",
  "LogRecord",
  "ParseableError",
  "ParseableHandler",
  "ParseableShipper",
  "Transport",
  "TransportError",
  "setup_logging",
]
