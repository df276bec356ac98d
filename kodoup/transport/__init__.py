"""Transports used to reach the upload service."""
from .base import Body, Transport
from .http import HttpxTransport

__all__ = ["Body", "HttpxTransport", "Transport"]
