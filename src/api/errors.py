from typing import Any, Optional


class GatewayError(Exception):
    """Base class for every failure talking to the remote gateway."""


class TransportError(GatewayError):
    """
    The request never got a response: host unreachable, connection reset,
    or the transport timeout expired.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class RejectedError(GatewayError):
    """
    The gateway answered with a non-2xx status.

    detail is the `message` or `error` field of a JSON body, if any.
    message is always readable: detail, else the raw body text, else the
    HTTP reason phrase.
    """

    def __init__(
        self,
        path: str,
        status_code: int,
        message: str,
        detail: Optional[str] = None,
        body: Optional[Any] = None,
    ):
        super().__init__(f"{path}: HTTP {status_code} {message}")
        self.path = path
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.body = body
