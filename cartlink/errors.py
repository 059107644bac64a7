"""Exception types used inside the shopping layer.

Only the transport and adapter constructors raise these. Public adapter
methods catch them and return a failed ``ShoppingOperationResult`` instead.
Validation failures and unsupported operations never raise; they come back
as ``ValidationResult`` failures and "not implemented" results.
"""


class ShoppingError(Exception):
    """Base class for all shopping-layer errors."""


class ConfigurationError(ShoppingError):
    """An adapter could not be built because credentials are missing or invalid."""


class UpstreamError(ShoppingError):
    """The retailer endpoint failed, timed out, or returned an unexpected shape."""


class SecurityRejection(UpstreamError):
    """The transport refused to contact a target (SSRF / protocol guard)."""
