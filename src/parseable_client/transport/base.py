from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

Body = Union[str, bytes]
Options = Mapping[str, Any]


@runtime_checkable
class Transport(Protocol):
  """
  One-shot HTTP POST capability used by the shipper.

  Implementations send ``body`` to ``url`` with the given ``"Name: value"``
  header strings and return the response body. Failures raise
  ``TransportError``; nothing is retried at this layer, so retrying or
  buffering transports are built by wrapping one that satisfies this
  contract.

  ``options`` keys are defined by each implementation.
  """

  def send(
    self,
    url: str,
    headers: Sequence[str],
    body: Body,
    options: Optional[Options] = None,
  ) -> str:
    ...
