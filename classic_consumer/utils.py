# utils.py
"""Failure classification and common utility functions."""

from logging import Logger
from typing import Any, Dict, Mapping, Optional

from prometheus_client import Counter

failure_counter = Counter('classic_consumer_failures', 'classic consumer failures', ['method', 'type'])
success_counter = Counter('classic_consumer_successes', 'classic consumer successes', ['method'])


class ClassicConsumerException(Exception):
    """
    Base class for the failures of a ClassicConsumer.

    Constructing one of these logs a single structured ERROR record that
    describes the failure, and counts it. The ClassicConsumer never lets them
    escape to its callers; they are collapsed to None at the public boundary.
    """

    failure_type = "unknown"

    def __init__(self,
                 message: str,
                 logger: Logger,
                 method: str,
                 endpoint: str,
                 request_headers: Optional[Mapping[str, str]] = None,
                 request_body: Optional[str] = None,
                 request_params: Optional[Mapping[str, str]] = None,
                 status_code: Optional[int] = None,
                 response_body: Optional[str] = None,
                 error: Optional[BaseException] = None) -> None:
        self.method = method
        self.endpoint = endpoint
        self.status_code = status_code
        self.error = error
        details: Dict[str, Any] = {
            "failure_type": self.failure_type,
            "method": method,
            "endpoint": endpoint,
            "request_headers": dict(request_headers or {}),
        }
        if request_body is not None:
            details["request_body"] = request_body
        if request_params is not None:
            details["request_params"] = dict(request_params)
        if status_code is not None:
            details["status_code"] = status_code
        if response_body is not None:
            details["response_body"] = response_body
        if error is not None:
            details["error"] = f"{error}"
        self.details = details
        logger.error(message, extra=details, exc_info=error)
        failure_counter.labels(method=method, type=self.failure_type).inc()
        super().__init__(message)


class TransportFailure(ClassicConsumerException):
    """Raised when a request could not be delivered: connection, DNS, timeout."""

    failure_type = "transport"


class HttpStatusFailure(ClassicConsumerException):
    """Raised when the server answers with an HTTP status of 400 or above."""

    failure_type = "http_status"


class MalformedResponseFailure(ClassicConsumerException):
    """Raised when a response body does not contain what we expected."""

    failure_type = "malformed_response"


class SigningFailure(ClassicConsumerException):
    """Raised when an assertion cannot be signed with the configured key material."""

    failure_type = "signing"


def record_success(method: str) -> None:
    """Count a successful request of the provided method."""
    success_counter.labels(method=method).inc()
