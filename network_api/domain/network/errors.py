# network_api/domain/network/errors.py
from __future__ import annotations


class NetworkError(Exception):
    """Base for network subsystem failures."""


class UpstreamUnavailableError(NetworkError):
    """Co-occurrence store or entity catalog failed. The caller may retry."""


class QueryCancelledError(NetworkError):
    """A newer query with the same identity key superseded this one."""
