"""Record serialisation for the ingestion endpoint.

Provides the formatter contract used by the shipper and the default
JSON implementation (one object per record, an array per batch).
"""

from __future__ import annotations

import json
import math
import traceback
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Protocol, Sequence, runtime_checkable

from .models import LogRecord


@runtime_checkable
class Formatter(Protocol):
  """Serialises single records and batches into request bodies."""

  def format(self, record: LogRecord) -> str:
    ...

  def format_batch(self, records: Sequence[LogRecord]) -> str:
    ...


class JsonFormatter:
  """Formatter producing compact JSON.

  ``format`` returns one JSON object per line; ``format_batch`` returns a
  JSON array of the same objects.
  """

  def __init__(
    self,
    append_newline: bool = True,
    max_depth: int = 9,
    max_items: int = 1000,
  ) -> None:
    """Initialize formatter.

    Args:
      append_newline: Terminate single-record output with a newline
      max_depth: Nesting level past which values are replaced by a marker
      max_items: Items kept per mapping or sequence before truncating
    """
    self.append_newline = append_newline
    self.max_depth = max_depth
    self.max_items = max_items

  def normalize(self, record: LogRecord) -> Dict[str, Any]:
    """Convert a record into a JSON-ready dict.

    Returns:
      Dict with keys message, context, level, level_name, channel,
      datetime and extra, in that order
    """
    return {
      "message": record.message,
      "context": self._normalize_value(record.context, 1),
      "level": int(record.level),
      "level_name": record.level.name,
      "channel": record.channel,
      "datetime": record.timestamp.isoformat(timespec="microseconds"),
      "extra": self._normalize_value(record.extra, 1),
    }

  def format(self, record: LogRecord) -> str:
    data = self._to_json(self.normalize(record))
    if self.append_newline:
      data += "\n"
    return data

  def format_batch(self, records: Sequence[LogRecord]) -> str:
    normalized: List[Dict[str, Any]] = [self.normalize(r) for r in records]
    return self._to_json(normalized)

  @staticmethod
  def _to_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, allow_nan=False, separators=(",", ":"))

  def _normalize_value(self, value: Any, depth: int = 0) -> Any:
    if depth > self.max_depth:
      return f"Over {self.max_depth} levels deep, aborting normalization"

    if value is None or isinstance(value, (bool, str)):
      return value
    if isinstance(value, float):
      if math.isnan(value):
        return "NaN"
      if math.isinf(value):
        return "INF" if value > 0 else "-INF"
      return value
    if isinstance(value, int):
      return int(value)
    if isinstance(value, Enum):
      return self._normalize_value(value.value, depth)
    if isinstance(value, Mapping):
      normalized: Dict[str, Any] = {}
      for count, (key, item) in enumerate(value.items()):
        if count >= self.max_items:
          normalized["..."] = self._truncated(len(value))
          break
        normalized[str(key)] = self._normalize_value(item, depth + 1)
      return normalized
    if isinstance(value, (list, tuple, set, frozenset)):
      items: List[Any] = []
      for count, item in enumerate(value):
        if count >= self.max_items:
          items.append(self._truncated(len(value)))
          break
        items.append(self._normalize_value(item, depth + 1))
      return items
    if isinstance(value, datetime):
      return value.isoformat(timespec="microseconds")
    if isinstance(value, date):
      return value.isoformat()
    if isinstance(value, BaseException):
      return {
        "class": type(value).__name__,
        "message": str(value),
        "trace": "".join(traceback.format_exception(type(value), value, value.__traceback__)),
      }
    return str(value)

  def _truncated(self, total: int) -> str:
    return f"Over {self.max_items} items ({total} total), aborting normalization"
