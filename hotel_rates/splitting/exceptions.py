"""
Errors raised by the pricing-period splitting engine.

Every error reaches the immediate caller; nothing in the engine logs and
swallows. Views map each class to an HTTP status.
"""


class PricingError(Exception):
    """Base class for all pricing-period errors."""

    default_message = 'Pricing period operation failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PricingError):
    """
    Malformed candidate: bad range, negative price, missing key fields.

    Raised before any overlap computation. ``errors`` maps field names to
    messages so forms can highlight the offending input.
    """

    default_message = 'Invalid pricing period'

    def __init__(self, errors, message=None):
        if isinstance(errors, str):
            errors = {'__all__': errors}
        self.errors = dict(errors)
        if message is None:
            message = '; '.join(self.errors.values()) or self.default_message
        super().__init__(message)


class ConflictError(PricingError):
    """
    The group changed between preview and commit.

    ``preview`` holds the freshly computed PreviewResult so the caller can
    show it instead of the stale one.
    """

    default_message = 'Pricing changed since the preview was generated. Please review the split again.'

    def __init__(self, message=None, preview=None):
        self.preview = preview
        super().__init__(message)


class StorageError(PricingError):
    """Transaction or connection failure during commit. Nothing was written."""

    default_message = 'Could not save pricing periods. Please try again.'
    retryable = True

    def __init__(self, message=None, transient=False):
        # transient: lock timeout or serialization failure, worth an automatic retry
        self.transient = transient
        super().__init__(message)


class PeriodNotFound(PricingError):
    """Unknown pricing period id."""

    default_message = 'Pricing period not found'

    def __init__(self, period_id, message=None):
        self.period_id = period_id
        super().__init__(message or f'Pricing period {period_id} not found')
