from __future__ import annotations

from typing import Optional


class ParseableError(Exception):
  """
  Base class for every error raised by parseable_client.
  """


class TransportError(ParseableError):
  """
  Raised when the HTTP POST to the ingestion endpoint cannot be completed.

  The original exception (if any) is kept on ``cause`` as well as chained
  via ``raise ... from``.
  """

  def __init__(
    self,
    message: str,
    *,
    url: Optional[str] = None,
    cause: Optional[BaseException] = None,
    status_code: Optional[int] = None,
  ) -> None:
    super().__init__(message)
    self.url = url
    self.cause = cause
    self.status_code = status_code


class ConfigurationError(ParseableError, ValueError):
  """
  Raised for missing or invalid construction parameters.
  """
