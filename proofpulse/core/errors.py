# ==============================================================================
# Domain Errors
# ==============================================================================
"""
Exception hierarchy for the engagement tracking core.

Missing or expired cache/session state is never an error; these exceptions
cover rejected input, unresolved identities, and an unavailable store.
"""


class ProofPulseError(Exception):
    """Base class for all errors raised by the tracking core."""

    status_code = 500


class InvalidInputError(ProofPulseError):
    """An event or request is missing required fields or is malformed."""

    status_code = 400


class NotFoundError(ProofPulseError):
    """A website or notification could not be resolved."""

    status_code = 404


class TransientStoreError(ProofPulseError):
    """The external store is unavailable. Retry policy belongs to the caller."""

    status_code = 503
