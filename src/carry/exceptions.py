"""Custom exceptions for the funding carry rebalancer.

All exchange, sizing and execution exceptions live here to avoid circular
imports between modules.
"""


class CarryError(Exception):
    """Base exception for all carry bot errors."""


class CredentialsMissingError(CarryError):
    """Raised when an authenticated call is attempted without credentials."""


class InvalidPriceError(CarryError):
    """Raised when a price is not finite and positive where one is required."""


class PriceUnavailableError(CarryError):
    """Raised when no usable reference price can be extracted for a symbol."""


class MarketDataError(CarryError):
    """Raised when the market context response is malformed or empty."""


class OrderPlacementError(CarryError):
    """Raised when an order fails before any leg of the hedge was placed."""


class PartialHedgeError(CarryError):
    """Raised when one leg of the hedge was placed and a later leg failed.

    The placed leg is NOT unwound. ``placed`` holds the acknowledged orders
    and ``failed_leg`` names the leg that raised.
    """

    def __init__(self, message: str, placed: list, failed_leg: str) -> None:
        super().__init__(message)
        self.placed = placed
        self.failed_leg = failed_leg


class NotificationError(CarryError):
    """Raised when the notification backend rejects a message."""
