"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed or out of range (negative amount, non-positive term, ...)"""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class BureauUnavailableError(DomainException):
    """Credit bureau is unreachable, timed out, or returned an unusable answer"""

    pass


class BureauRecordNotFoundError(DomainException):
    """Bureau has no record for the document (only raised by strict gateways)"""

    pass


class ScoringInvariantError(DomainException):
    """Aggregation invariant violated - a programming defect, never a business outcome"""

    pass
