"""Transports that POST request bodies to the ingestion endpoint."""

from .base import Body, Options, Transport
from .http_transport import HttpTransport

__all__ = ["Body", "HttpTransport", "Options", "Transport"]
