"""Error taxonomy for the market analysis pipeline.

Every error knows the HTTP status it maps to so the single top-level handler in
the server can turn it into a JSON body without a lookup table.
"""

from typing import Any, Dict, Optional


class MarketAnalysisError(RuntimeError):
    """Base class for failures that abort a market analysis request."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None, status: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        if self.status:
            body["status"] = self.status
        return body


class MissingAddress(MarketAnalysisError):
    status_code = 400

    def __init__(self, details: Optional[str] = None) -> None:
        super().__init__("Address is required", details=details)


class MissingApiKey(MarketAnalysisError):
    def __init__(self) -> None:
        super().__init__(
            "Google Maps API key not configured",
            details="GOOGLE_MAPS_API_KEY must be set in the environment of the worker",
        )


class InvalidApiKeyFormat(MarketAnalysisError):
    def __init__(self) -> None:
        super().__init__(
            "Invalid Google Maps API key format",
            details='The API key should start with "AIza" and be at least 30 characters long',
        )


class GeocodeFailed(MarketAnalysisError):
    status_code = 400

    def __init__(self, details: Optional[str] = None, status: Optional[str] = None) -> None:
        super().__init__(
            "Could not geocode the provided address",
            details=details or "Address not found or invalid",
            status=status,
        )


AddressNotFound = GeocodeFailed


class PlacesApiError(MarketAnalysisError):
    def __init__(self, status: Optional[str], details: Optional[str] = None) -> None:
        super().__init__(
            f"Places API error: {status or 'UNKNOWN'}",
            details=details or "Unknown Places API error",
        )


class SchoolNotFound(MarketAnalysisError):
    status_code = 404

    def __init__(self, school_id: str) -> None:
        super().__init__("School not found", details=f"No school_customizations row with id={school_id}")
        self.school_id = school_id
