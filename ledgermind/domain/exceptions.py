"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InsightGenerationError(DomainException):
    """Text generation service failed or returned an unusable response"""

    pass


class NoTransactionsInRangeError(DomainException):
    """Date window excludes every submitted transaction"""

    pass
