"""
Error types

ConfigurationError is fatal at build time (malformed variants, broken config
files). SubmissionFault is the single recoverable failure of a submit
capability. ValidationError stops a form before the state machine sees it.
"""

from typing import List, Optional


class PortfolioMotionError(Exception):
    """Base class for all package errors"""


class ConfigurationError(PortfolioMotionError):
    """Malformed variant or configuration; the offending object is never built"""


class SubmissionFault(PortfolioMotionError):
    """
    Any failure of a submit capability

    Network, server and transport-side validation failures all collapse into
    this one type. The original exception (if any) is kept in `cause`.
    """

    def __init__(self, message: str = "Submission failed", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ValidationError(PortfolioMotionError):
    """Required form fields are blank"""

    def __init__(self, missing: List[str]):
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = missing
