"""
Scoped Rollbar - asynchronous error reporting for Rollbar.

Builds Rollbar item payloads, posts them to the ingestion API and retries
rate-limited requests under a stable, client-generated report UUID.
"""

__version__ = "1.2.0"
__author__ = "Scoped Rollbar contributors"

from scoped_rollbar.levels import Level
from scoped_rollbar.scope import Scope, create_scope
from scoped_rollbar.transport import HttpFailure, RateLimited, ReportError, TransportError

__all__ = [
    "__version__",
    "Level",
    "Scope",
    "create_scope",
    "ReportError",
    "TransportError",
    "HttpFailure",
    "RateLimited",
]
