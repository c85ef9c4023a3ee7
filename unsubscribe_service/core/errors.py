"""Error taxonomy for the unsubscribe workflow.

``UnsubscribeError`` is the single recoverable category: its message is safe
to show to the caller and is returned as ``{"error": message}`` with a 400.
Gate-level failures (credentials, admission) are separate types with their
own status codes. Anything else is a defect and surfaces as an opaque 500.
"""


class UnsubscribeError(Exception):
    """Recoverable, caller-visible failure of an unsubscribe leg."""

    code = "unsubscribe_error"
    default_message = "The unsubscribe request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidEmailFormat(UnsubscribeError):
    code = "invalid_email_format"
    default_message = (
        "The email address provided is invalid. "
        "Please use the format firstname.lastname@gmail.com."
    )


class InvalidTimestamp(UnsubscribeError):
    code = "invalid_timestamp"
    default_message = "Invalid timestamp format. Please provide a valid date and time."


class LinkExpired(UnsubscribeError):
    code = "link_expired"
    default_message = (
        "The link has expired or is invalid. Please request a new unsubscribe link."
    )


class NotSubscribed(UnsubscribeError):
    code = "not_subscribed"
    default_message = "Email not found in the mailing list."


class TemplateNotFound(UnsubscribeError):
    code = "template_not_found"
    default_message = "The requested template is not available."


class InvalidOrExpiredToken(UnsubscribeError):
    code = "invalid_or_expired_token"
    default_message = "Invalid or expired token."


class NotificationDeliveryFailed(UnsubscribeError):
    """Webhook or mail dispatch failed after the list removal was committed."""

    code = "notification_delivery_failed"
    default_message = "Failed to deliver the unsubscribe notification."


class UnauthorizedCredentials(Exception):
    """Missing or mismatched basic-auth credentials."""

    def __init__(self, message: str = "Authorization is not valid") -> None:
        self.message = message
        super().__init__(message)


class AdmissionRejected(Exception):
    """Request refused by admission control (window and queue exhausted)."""

    def __init__(self, message: str = "Too many requests. Please try again later.") -> None:
        self.message = message
        super().__init__(message)


class CacheTypeError(TypeError):
    """A cached value was read back as a different type than it was stored as."""

    def __init__(self, key: str, expected: type, actual: type) -> None:
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Cache entry {key!r} holds {actual.__name__}, not {expected.__name__}"
        )
