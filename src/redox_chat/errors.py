"""Fatal errors raised by the Redox HTTP layer.

These are infrastructure failures. They propagate out of the current turn
and end the session; they are never retried or turned into tool output.
"""


class RedoxAPIError(Exception):
    """Raised when a Redox API request returns a non-2xx response.

    A status_code of 0 means the request never got a response (connection
    failure, timeout).
    """

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"{status_code} {reason} {body}")


class RedoxAuthError(RedoxAPIError):
    """Raised when the token endpoint rejects a client-credentials grant."""
