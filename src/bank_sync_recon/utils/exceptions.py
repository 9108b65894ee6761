"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class BatchParseError(ReconciliationError):
    """Error reading a transaction batch file."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class AmbiguousVendorMatchError(ReconciliationError):
    """The local batch holds the same vendor id more than once."""

    def __init__(self, vendor_ids: list[str]):
        self.vendor_ids = vendor_ids
        super().__init__(
            f"Local batch contains duplicate vendor ids: {', '.join(vendor_ids)}"
        )


class ReportGenerationError(ReconciliationError):
    """Error writing a reconciliation report."""

    pass
