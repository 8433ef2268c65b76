from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from .errors import ConfigurationError
from .models import Level, LevelLike

if TYPE_CHECKING:
  from .shipper import ParseableShipper
  from .transport import Transport


@dataclass(frozen=True)
class ClientConfig:
  """
  Connection settings for a Parseable stream.

  Values come from explicit parameters first, then environment variables,
  then defaults.
  """

  host: str
  stream: str
  username: str = ""
  password: str = ""
  port: int = 8000
  level: Level = Level.DEBUG
  enabled: bool = True

  @classmethod
  def from_env(cls) -> "ClientConfig":
    """
    Load configuration from environment variables.

    Required:
      - PARSEABLE_HOST
      - PARSEABLE_STREAM

    Optional:
      - PARSEABLE_PORT (default: 8000)
      - PARSEABLE_USERNAME / PARSEABLE_PASSWORD (default: empty)
      - PARSEABLE_LEVEL (default: debug)
      - PARSEABLE_ENABLED (default: true)
    """
    return cls.from_params_or_env()

  @classmethod
  def from_params_or_env(
    cls,
    host: Optional[str] = None,
    stream: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    port: Optional[Union[int, str]] = None,
    level: Optional[LevelLike] = None,
  ) -> "ClientConfig":
    """
    Build configuration from explicit parameters, falling back to environment variables.

    Raises:
      ConfigurationError: if host or stream is missing, or port/level is invalid
    """
    resolved_host = host or os.getenv("PARSEABLE_HOST")
    if not resolved_host:
      raise ConfigurationError(
        "Missing Parseable host. Pass host=... or set PARSEABLE_HOST "
        "(e.g. https://logs.example.com)."
      )

    resolved_stream = stream or os.getenv("PARSEABLE_STREAM")
    if not resolved_stream:
      raise ConfigurationError("Missing Parseable stream. Pass stream=... or set PARSEABLE_STREAM.")

    user = username if username is not None else os.getenv("PARSEABLE_USERNAME", "")
    secret = password if password is not None else os.getenv("PARSEABLE_PASSWORD", "")

    return cls(
      host=resolved_host,
      stream=resolved_stream,
      username=user,
      password=secret,
      port=_parse_port(port if port is not None else os.getenv("PARSEABLE_PORT", "8000")),
      level=Level.coerce(level if level is not None else os.getenv("PARSEABLE_LEVEL", "debug")),
      enabled=shipping_enabled(),
    )

  def build_shipper(self, transport: Optional["Transport"] = None) -> "ParseableShipper":
    from .shipper import ParseableShipper

    return ParseableShipper(
      host=self.host,
      stream=self.stream,
      username=self.username,
      password=self.password,
      port=self.port,
      level=self.level,
      transport=transport,
    )


def _parse_port(raw: Union[int, str]) -> int:
  if isinstance(raw, bool):
    raise ConfigurationError(f"Invalid Parseable port {raw!r}")
  try:
    return int(raw)
  except (TypeError, ValueError):
    raise ConfigurationError(
      f"Invalid Parseable port {raw!r}. Expected an integer such as 8000."
    ) from None


def shipping_enabled() -> bool:
  """
  Determine whether shipping is enabled.

  Uses PARSEABLE_ENABLED; defaults to True.
  Accepts common truthy/falsey strings.
  """
  raw = os.getenv("PARSEABLE_ENABLED")
  if raw is None:
    return True

  value = raw.strip().lower()
  if value in ("1", "true", "yes", "on"):
    return True
  if value in ("0", "false", "no", "off"):
    return False

  # Unknown value: keep logs local rather than guess.
  return False
