"""Custom exceptions for Portfolio Ledger.

This module defines the exception hierarchy for the application.

Every domain failure raised by the portfolio core derives from PortfolioError
and carries an ErrorKind tag and a stable numeric code, so callers can branch
on the kind without matching on message text.
"""

from enum import Enum


class ErrorKind(Enum):
    """Tags for portfolio-level failures, with their stable error codes."""

    NOT_AUTHORIZED = 100
    PORTFOLIO_NOT_FOUND = 101
    INSUFFICIENT_BALANCE = 102
    INVALID_TOKEN = 103
    REBALANCE_FAILED = 104
    PORTFOLIO_ALREADY_EXISTS = 105
    INVALID_PERCENTAGE = 106
    MAX_TOKENS_EXCEEDED = 107
    LENGTH_MISMATCH = 108
    USER_STORAGE_FULL = 109
    INVALID_TOKEN_ID = 110
    INACTIVE_PORTFOLIO = 111
    INVALID_TOKEN_COUNT = 112


class LedgerError(Exception):
    """Base exception for all Portfolio Ledger errors.

    All custom exceptions in the application should inherit from this class.
    """

    pass


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Missing required configuration keys
        - Invalid configuration values
        - Configuration file not found
    """

    pass


class DataError(LedgerError):
    """Base exception for data layer errors.

    Parent class for all data-related exceptions.
    """

    pass


class StorageError(DataError):
    """Raised when database operations fail.

    Examples:
        - Database connection failed
        - SQL query failed
        - Data integrity constraint violated
    """

    pass


class PortfolioError(LedgerError):
    """Base exception for portfolio layer errors.

    Parent class for all portfolio-related exceptions. Subclasses set
    ``kind``; ``code`` is derived from it.
    """

    kind: ErrorKind = None

    @property
    def code(self) -> int:
        return self.kind.value if self.kind is not None else 0


class NotAuthorizedError(PortfolioError):
    """Raised when the caller may not perform the operation.

    Examples:
        - Non-owner updating a portfolio allocation
        - Non-owner triggering a rebalance
        - Protocol owner handoff by anyone but the protocol owner
    """

    kind = ErrorKind.NOT_AUTHORIZED


class PortfolioNotFoundError(PortfolioError):
    """Raised when no portfolio is stored under the requested ID."""

    kind = ErrorKind.PORTFOLIO_NOT_FOUND


class InsufficientBalanceError(PortfolioError):
    """Reserved for balance checks; no ledger operation raises it yet."""

    kind = ErrorKind.INSUFFICIENT_BALANCE


class InvalidTokenError(PortfolioError):
    """Raised when an asset address is missing or blank."""

    kind = ErrorKind.INVALID_TOKEN


class RebalanceFailedError(PortfolioError):
    """Reserved for trade execution failures; rebalancing only timestamps."""

    kind = ErrorKind.REBALANCE_FAILED


class PortfolioAlreadyExistsError(PortfolioError):
    """Reserved; sequential ID allocation never collides."""

    kind = ErrorKind.PORTFOLIO_ALREADY_EXISTS


class InvalidPercentageError(PortfolioError):
    """Raised when a target percentage or percentage set is invalid.

    Examples:
        - Percentage outside [0, 10000] basis points
        - Percentages not summing to exactly 10000
    """

    kind = ErrorKind.INVALID_PERCENTAGE


class MaxTokensExceededError(PortfolioError):
    """Raised when an asset slot is beyond the per-portfolio maximum."""

    kind = ErrorKind.MAX_TOKENS_EXCEEDED


class LengthMismatchError(PortfolioError):
    """Raised when token and percentage sequences differ in length."""

    kind = ErrorKind.LENGTH_MISMATCH


class UserStorageFullError(PortfolioError):
    """Raised when an owner already holds the maximum number of portfolios."""

    kind = ErrorKind.USER_STORAGE_FULL


class IndexCapacityExceededError(UserStorageFullError):
    """Raised by the owner index when an append would exceed its bound."""

    pass


class InvalidTokenIdError(PortfolioError):
    """Raised when an asset slot does not exist in the portfolio."""

    kind = ErrorKind.INVALID_TOKEN_ID


class InactivePortfolioError(PortfolioError):
    """Raised when rebalancing a portfolio that is not active."""

    kind = ErrorKind.INACTIVE_PORTFOLIO


class InvalidTokenCountError(PortfolioError):
    """Raised when a portfolio is created with too few or too many assets."""

    kind = ErrorKind.INVALID_TOKEN_COUNT
