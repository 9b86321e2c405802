"""Domain error taxonomy mapped to HTTP responses by the application factory."""

from __future__ import annotations


class VodstreamError(Exception):
    """Base class for errors raised by vodstream services."""

    kind = "error"


class NotFoundError(VodstreamError):
    """A referenced plan, subscription, user, video, series or reminder is absent."""

    kind = "not_found"


class ConflictError(VodstreamError):
    """The request conflicts with the current state of a record."""

    kind = "conflict"


class ValidationError(VodstreamError):
    """The request is well formed but violates a business rule."""

    kind = "validation"


class AccessDeniedError(VodstreamError):
    kind = "access_denied"

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class ProcessorError(VodstreamError):
    """A payment processor call failed. Surfaced as a 5xx and never retried."""

    kind = "processor_error"


class SignatureInvalidError(VodstreamError):
    """Webhook authentication failed; the event was not processed."""

    kind = "signature_invalid"


class MediaStorageError(VodstreamError):
    """An S3 or CloudFront operation failed or is not configured."""

    kind = "media_storage_error"
