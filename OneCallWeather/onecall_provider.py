"""One Call provider abstraction and the errors raised by this library."""
from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from onecall_data import Coordinate, OneCallResponse


class OneCallProviderBase(ABC):
    """Abstract base class for anything that can produce a One Call report."""

    @abstractmethod
    def fetch_report(self, coordinate: "Coordinate") -> "OneCallResponse":
        """
        Fetch the combined weather report for a coordinate.

        Returns:
            OneCallResponse: Fully decoded report

        Raises:
            OneCallTransportError: If the HTTP exchange fails
            OneCallParseError: If the body does not match the response model
        """
        pass


class OneCallError(Exception):
    """Base exception for everything raised by the One Call client."""
    pass


class OneCallTransportError(OneCallError):
    """Raised when the HTTP layer fails or the provider answers with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OneCallParseError(OneCallError):
    """
    Raised when a response body does not match the One Call response model.

    ``path`` locates the offending field, e.g. ``hourly[3].wind_deg``.
    ``$`` stands for the document itself.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
