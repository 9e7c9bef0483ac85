"""Exception types for recoverable failures outside the pricing core."""


class OptionCalcError(Exception):
    """Base class for option-calc errors."""


class FeedError(OptionCalcError):
    """A volatility feed cycle failed (transport, payload, or timeout)."""

    def __init__(self, message: str, asset: str = ""):
        self.asset = asset
        super().__init__(message)


class PriceLookupError(OptionCalcError):
    """The asset price source could not produce a spot price."""
