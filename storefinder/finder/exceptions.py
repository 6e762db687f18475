"""Errors raised by the store finder."""


class StoreFinderError(Exception):
    """Base class. `message` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AcquisitionError(StoreFinderError):
    """No coordinates could be produced for the search center."""


class ServiceError(StoreFinderError):
    """The Gemini call failed."""


class NoDataError(ServiceError):
    """The Gemini call returned nothing readable."""


class InvalidCredentialError(ServiceError):
    """The API key is missing or was rejected."""


class StaleSearchError(StoreFinderError):
    """A newer search on the same session superseded this one."""

    def __init__(self, token: int, current: int):
        super().__init__("This search was superseded by a newer one.")
        self.token = token
        self.current = current
