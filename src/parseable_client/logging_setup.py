from __future__ import annotations

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Union

from .config import ClientConfig, shipping_enabled
from .models import Level, LevelLike, LogRecord
from .shipper import ParseableShipper
from .transport import Transport

# Loggers whose records are never shipped (our own diagnostics).
_INTERNAL_PREFIX = "parseable_client"


class ParseableHandler(logging.Handler):
  """
  Logging handler that converts stdlib records and hands them to a shipper.

  The handler level mirrors the shipper's minimum level, so the stdlib
  ``Logger`` drops lower records before ``emit`` is reached.
  """

  def __init__(self, shipper: ParseableShipper) -> None:
    super().__init__(level=shipper.level.to_logging())
    self._shipper = shipper

  @property
  def shipper(self) -> ParseableShipper:
    return self._shipper

  def emit(self, record: logging.LogRecord) -> None:
    if _is_internal(record):
      return
    try:
      self._shipper.handle(to_log_record(record))
    except Exception:
      # Never break application logging.
      self.handleError(record)

  def emit_batch(self, records: Iterable[logging.LogRecord]) -> None:
    """
    Ship several stdlib records in one request.

    Level filtering is left to the shipper's batch semantics. Errors
    propagate to the caller.
    """
    converted = [to_log_record(r) for r in records if not _is_internal(r)]
    self._shipper.handle_batch(converted)

  def close(self) -> None:
    try:
      self._shipper.close()
    finally:
      super().close()


def to_log_record(record: logging.LogRecord) -> LogRecord:
  """
  Build a ``LogRecord`` from a stdlib record.

  Structured context is read from a ``context`` attribute, i.e.
  ``logger.info("msg", extra={"context": {...}})``.
  """
  extra: Dict[str, Any] = {}

  # Basic file/line information when available.
  if getattr(record, "pathname", None):
    extra["file_path"] = record.pathname
  if getattr(record, "lineno", None) is not None:
    extra["line_no"] = record.lineno
  if getattr(record, "funcName", None):
    extra["function"] = record.funcName

  if record.exc_info:
    _type, _value, _tb = record.exc_info
    if _type is not None:
      extra["exception_type"] = _type.__name__
      extra["stacktrace"] = "".join(traceback.format_exception(_type, _value, _tb))

  context = getattr(record, "context", None)

  return LogRecord(
    timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
    channel=record.name,
    level=Level.from_logging(record.levelno),
    message=record.getMessage(),
    context=dict(context) if isinstance(context, dict) else {},
    extra=extra,
  )


def setup_logging(
  logger: Optional[logging.Logger] = None,
  *,
  host: Optional[str] = None,
  stream: Optional[str] = None,
  username: Optional[str] = None,
  password: Optional[str] = None,
  port: Optional[Union[int, str]] = None,
  level: Optional[LevelLike] = None,
  transport: Optional[Transport] = None,
) -> Optional[ParseableHandler]:
  """
  Attach a Parseable handler to a stdlib logger (root by default).

  Existing handlers are left in place. Returns the attached handler, the
  already attached one if present, or None when shipping is disabled via
  PARSEABLE_ENABLED.
  """
  if not shipping_enabled():
    # Shipping is disabled; preserve existing logging behavior only.
    return None

  target_logger = logger or logging.getLogger()

  # Avoid attaching duplicate handlers to the same logger.
  for existing in target_logger.handlers:
    if isinstance(existing, ParseableHandler):
      return existing

  config = ClientConfig.from_params_or_env(
    host=host,
    stream=stream,
    username=username,
    password=password,
    port=port,
    level=level,
  )

  handler = ParseableHandler(config.build_shipper(transport=transport))
  target_logger.addHandler(handler)
  return handler


def _is_internal(record: logging.LogRecord) -> bool:
  return record.name == _INTERNAL_PREFIX or record.name.startswith(_INTERNAL_PREFIX + ".")
