from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import httpx

from ..errors import ConfigurationError, TransportError
from .base import Body, Options


_logger = logging.getLogger("parseable_client.transport")

# Per-request keyword arguments forwarded to httpx.Client.post.
SUPPORTED_OPTIONS = frozenset({"timeout", "follow_redirects", "params", "extensions"})


@dataclass
class HttpTransport:
  """
  Default transport: a single blocking POST through httpx.

  A fresh client is opened for every call and closed afterwards, so no
  connection is kept between sends. Errors are logged at WARNING level
  and re-raised as ``TransportError``.

  Recognised ``options`` keys: ``timeout``, ``follow_redirects``,
  ``params`` and ``extensions``, all passed to ``httpx.Client.post``.
  """

  timeout: float = 5.0
  raise_for_status: bool = True
  # Lets callers plug in e.g. httpx.MockTransport.
  http_transport: Optional[httpx.BaseTransport] = None

  def send(
    self,
    url: str,
    headers: Sequence[str],
    body: Body,
    options: Optional[Options] = None,
  ) -> str:
    if not url:
      raise TransportError("Cannot send to an empty URL", url=url)

    request_kwargs = _request_options(options)
    request_headers = parse_headers(headers)
    content = body.encode("utf-8") if isinstance(body, str) else body

    try:
      with httpx.Client(transport=self.http_transport, timeout=self.timeout) as client:
        _logger.debug("POST %s (%d bytes)", url, len(content))
        response = client.post(
          url,
          content=content,
          headers=request_headers,
          **request_kwargs,
        )
        if self.raise_for_status:
          response.raise_for_status()
        return response.text
    except httpx.HTTPStatusError as exc:
      _logger.warning(
        "parseable_client HTTP transport got status %s from %s",
        exc.response.status_code,
        url,
      )
      raise TransportError(
        f"Ingestion endpoint returned HTTP {exc.response.status_code}: {exc.response.text}",
        url=url,
        cause=exc,
        status_code=exc.response.status_code,
      ) from exc
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError, OSError) as exc:
      _logger.warning(
        "parseable_client HTTP transport failed to reach %s: %s",
        url,
        exc,
      )
      raise TransportError(f"POST to {url} failed: {exc}", url=url, cause=exc) from exc


def parse_headers(headers: Sequence[str]) -> Dict[str, str]:
  """
  Turn ``"Name: value"`` strings into a header mapping.

  Raises:
    ConfigurationError: if a header has no ``:`` separator
  """
  parsed: Dict[str, str] = {}
  for header in headers:
    name, sep, value = header.partition(":")
    if not sep or not name.strip():
      raise ConfigurationError(f"Malformed header {header!r}, expected 'Name: value'")
    parsed[name.strip()] = value.strip()
  return parsed


def _request_options(options: Optional[Options]) -> Dict[str, Any]:
  if not options:
    return {}

  unknown = set(options) - SUPPORTED_OPTIONS
  if unknown:
    raise ConfigurationError(
      f"Unsupported HttpTransport option(s): {', '.join(sorted(unknown))}. "
      f"Supported: {', '.join(sorted(SUPPORTED_OPTIONS))}"
    )
  return dict(options)
