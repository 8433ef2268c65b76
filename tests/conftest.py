import os
from typing import Any, List, Optional, Sequence, Tuple

import pytest


class RecordingTransport:
  """Transport double that remembers every send() call."""

  def __init__(self, response: str = "", error: Optional[Exception] = None) -> None:
    self.calls: List[Tuple[str, List[str], Any, Any]] = []
    self._response = response
    self._error = error

  def send(self, url: str, headers: Sequence[str], body: Any, options: Any = None) -> str:
    self.calls.append((url, list(headers), body, options))
    if self._error is not None:
      raise self._error
    return self._response


@pytest.fixture(autouse=True)
def _clean_parseable_env(monkeypatch):
  for name in list(os.environ):
    if name.startswith("PARSEABLE_"):
      monkeypatch.delenv(name, raising=False)


@pytest.fixture
def transport() -> RecordingTransport:
  return RecordingTransport()
