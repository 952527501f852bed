"""
Billing engine errors.
All of them are deterministic: the same input raises the same error, so none is retried.
A caller that catches one must treat the billing status as unknown.
"""


class BillingError(Exception):
    """Base class; `code` is the machine-readable value returned by the API."""
    code = "billing_error"


class ConfigError(BillingError):
    """Group tariff cannot produce a usable cycle configuration."""
    code = "config_error"


class OrderingError(BillingError):
    """A session or payment carries a missing or unparseable date."""
    code = "ordering_error"


class NotFoundError(BillingError):
    """A referenced student or group is missing from the supplied data."""
    code = "not_found"


class InvalidInputError(BillingError):
    """Malformed input value: negative fee or threshold, unknown status, duplicate mark."""
    code = "invalid_input"
