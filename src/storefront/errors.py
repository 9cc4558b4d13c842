"""Error taxonomy shared by the domain, the gateway adapter and the HTTP layer.

Every error carries a ``reason`` tag, the HTTP status it maps to, and a
``messages`` dict in the same ``{"field": ["message"]}`` shape that Protean's
``ValidationError`` uses.
"""


class StorefrontError(Exception):
    reason = "Error"
    status_code = 500

    def __init__(self, messages, field="_entity"):
        if isinstance(messages, str):
            messages = {field: [messages]}
        self.messages = messages
        super().__init__(messages)

    @property
    def message(self) -> str:
        """The first human-readable message, for logs and flat responses."""
        for values in self.messages.values():
            if values:
                return values[0]
        return self.reason

    def to_dict(self) -> dict:
        return {"error": self.reason, "messages": self.messages}


class NotFound(StorefrontError):
    reason = "NotFound"
    status_code = 404


class Forbidden(StorefrontError):
    reason = "Forbidden"
    status_code = 403


class InvalidState(StorefrontError):
    reason = "InvalidState"
    status_code = 409


class ValidationFailed(StorefrontError):
    reason = "ValidationFailed"
    status_code = 422


class GatewayError(StorefrontError):
    """The payment provider call failed or returned a non-success status."""

    reason = "GatewayError"
    status_code = 502

    def __init__(self, messages, field="gateway", upstream_status=None):
        super().__init__(messages, field=field)
        self.upstream_status = upstream_status


class AuthenticityFailed(StorefrontError):
    reason = "AuthenticityFailed"
    status_code = 401


class Unauthenticated(StorefrontError):
    reason = "Unauthenticated"
    status_code = 401


_BY_REASON = {cls.reason: cls for cls in (NotFound, Forbidden, InvalidState, ValidationFailed)}


def error_for(reason: str, message: str, field: str = "_entity") -> StorefrontError:
    """Build the exception matching a state machine rejection tag."""
    return _BY_REASON[reason](message, field=field)
