class PortfolioError(Exception):
    """Base class for domain errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(PortfolioError):
    """Unknown ticker, account, asset, holding or user."""

    status_code = 404


class InvalidInput(PortfolioError):
    """Bad ticker format, non-positive quantity or price, conflicting state."""

    status_code = 400


class InsufficientQuantity(PortfolioError):
    """Sell quantity exceeds the held quantity."""

    status_code = 400

    def __init__(self, available, requested):
        super().__init__(
            f"Insufficient quantity. Available: {available}, Requested: {requested}"
        )
        self.available = available
        self.requested = requested


class UpstreamUnavailable(PortfolioError):
    """The quote provider failed and no cached data could stand in."""

    status_code = 502


class PriceUnavailable(PortfolioError):
    """No price source could be resolved for a sell."""

    status_code = 422
