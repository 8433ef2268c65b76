from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigurationError

LevelLike = Union["Level", int, str]


class Level(IntEnum):
  """
  Severity levels, ordered by numeric rank.
  """

  DEBUG = 100
  INFO = 200
  NOTICE = 250
  WARNING = 300
  ERROR = 400
  CRITICAL = 500
  ALERT = 550
  EMERGENCY = 600

  def to_logging(self) -> int:
    """Stdlib ``logging`` level number for this level."""
    return _TO_LOGGING[self]

  @classmethod
  def from_logging(cls, levelno: int) -> "Level":
    """
    Map a stdlib level number to the highest level it reaches.

    Anything below ``logging.DEBUG`` maps to DEBUG; custom in-between
    numbers round down (e.g. 35 -> WARNING).
    """
    found = cls.DEBUG
    for level in cls:
      if _TO_LOGGING[level] <= levelno:
        found = level
    return found

  @classmethod
  def coerce(cls, value: LevelLike) -> "Level":
    """
    Accept a Level, a rank, a stdlib level number or a level name.

    Raises:
      ConfigurationError: if the value does not name a level
    """
    if isinstance(value, cls):
      return value

    if isinstance(value, bool):
      raise ConfigurationError(f"Invalid log level: {value!r}")

    if isinstance(value, str):
      name = value.strip()
      if name.isdigit():
        return cls.coerce(int(name))
      name = name.upper()
      if name == "WARN":
        name = "WARNING"
      try:
        return cls[name]
      except KeyError:
        raise ConfigurationError(
          f"Invalid log level: {value!r}. "
          f"Must be one of: {', '.join(level.name.lower() for level in cls)}"
        ) from None

    if isinstance(value, int):
      if value in cls._value2member_map_:
        return cls(value)
      if 0 <= value < cls.DEBUG:
        return cls.from_logging(value)

    raise ConfigurationError(f"Invalid log level: {value!r}")


_TO_LOGGING: Dict[Level, int] = {
  Level.DEBUG: logging.DEBUG,
  Level.INFO: logging.INFO,
  Level.NOTICE: 25,
  Level.WARNING: logging.WARNING,
  Level.ERROR: logging.ERROR,
  Level.CRITICAL: logging.CRITICAL,
  Level.ALERT: 55,
  Level.EMERGENCY: 60,
}


class LogRecord(BaseModel):
  """
  A single structured log event, as handed to the shipper.

  Records are frozen and the top level of ``context``/``extra`` is a
  read-only mapping; nested containers are not copied. Processors build
  modified copies with ``record.model_copy(update=...)``, which skips
  validation, so updated mappings are stored as given.
  """

  model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

  timestamp: datetime = Field(
    default_factory=lambda: datetime.now(timezone.utc),
    description="When the event happened (timezone-aware)",
  )
  channel: str = "app"
  level: Level = Level.DEBUG
  message: str

  context: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
  extra: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

  @field_validator("level", mode="before")
  @classmethod
  def _coerce_level(cls, value: Any) -> Level:
    return Level.coerce(value)

  @field_validator("context", "extra")
  @classmethod
  def _read_only(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))

  @field_validator("timestamp")
  @classmethod
  def _ensure_aware(cls, value: datetime) -> datetime:
    # Naive datetimes are taken as local time.
    if value.tzinfo is None:
      return value.astimezone()
    return value
