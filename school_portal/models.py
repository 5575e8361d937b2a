"""Core data models shared by the market analysis pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True)
class CompetitorResult:
    """Normalized snapshot of a school returned by the nearby search."""

    place_id: Optional[str]
    name: str
    vicinity: Optional[str] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    price_level: Optional[int] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CompetitorResult:
        if not data.get("name"):
            raise ValueError("competitor entry without name")
        return cls(
            place_id=data.get("place_id"),
            name=data["name"],
            vicinity=data.get("vicinity"),
            rating=data.get("rating"),
            user_ratings_total=data.get("user_ratings_total"),
            price_level=data.get("price_level"),
            lat=data.get("lat"),
            lng=data.get("lng"),
        )


@dataclass(slots=True)
class PriceDistribution:
    budget: int = 0
    moderate: int = 0
    expensive: int = 0
    luxury: int = 0

    def total(self) -> int:
        return self.budget + self.moderate + self.expensive + self.luxury


@dataclass(slots=True)
class MarketAnalysis:
    total_competitors: int
    average_rating: float
    high_rated_count: int
    price_distribution: PriceDistribution
    insights: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MarketAnalysis:
        return cls(
            total_competitors=int(data["total_competitors"]),
            average_rating=float(data["average_rating"]),
            high_rated_count=int(data.get("high_rated_count", 0)),
            price_distribution=PriceDistribution(**data["price_distribution"]),
            insights=list(data.get("insights") or []),
        )


@dataclass(slots=True)
class MarketAnalysisSnapshot:
    """Point-in-time output of one pipeline run, cached on the school record."""

    competitors: List[CompetitorResult]
    analysis: MarketAnalysis
    center_coordinates: Coordinates
    computed_at: str
    radius: int
    degraded: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MarketAnalysisSnapshot:
        """Load a stored snapshot.

        Raises ValueError, TypeError or KeyError when ``data`` is not shaped like
        the output of :meth:`to_dict`.
        """
        if not isinstance(data, dict):
            raise TypeError(f"snapshot must be a mapping, got {type(data).__name__}")
        center = data["center_coordinates"]
        return cls(
            competitors=[CompetitorResult.from_dict(item) for item in data["competitors"]],
            analysis=MarketAnalysis.from_dict(data["analysis"]),
            center_coordinates=Coordinates(lat=float(center["lat"]), lng=float(center["lng"])),
            computed_at=str(data["computed_at"]),
            radius=int(data["radius"]),
            degraded=bool(data.get("degraded", False)),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(slots=True)
class SchoolRecord:
    """A tenant's row in ``school_customizations``, reduced to what the pipeline reads."""

    id: str
    school_name: str
    address: Optional[str] = None
    market_analysis: Optional[Dict[str, Any]] = field(default=None, repr=False)
    updated_at: Optional[Any] = None
