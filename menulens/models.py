"""
Typed data models for the recognition and comparison pipelines.
All data structures used throughout the codebase should be defined here.
"""
import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

T = TypeVar("T")

EARTH_RADIUS_METERS = 6371000


@dataclass(frozen=True)
class Coordinates:
    """A GPS fix in decimal degrees."""
    lat: float
    lng: float


def haversine_meters(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in meters."""
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(dlng / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.asin(math.sqrt(h))


class CandidateTier(Enum):
    """Priority bucket of a text candidate. Lower value sorts first."""
    KEYWORD_MATCH = 1
    PROPER_NOUN = 2
    ALL_CAPS = 3


@dataclass(frozen=True)
class TextCandidate:
    """A text fragment from signage that may be a business name."""
    text: str
    tier: CandidateTier


@dataclass(frozen=True)
class OCRResult:
    """Text read from a camera frame."""
    full_text: str = ""
    blocks: List[str] = field(default_factory=list)
    confidence: float = 0.0


@dataclass(frozen=True)
class GeoBusiness:
    """Snapshot of a business record returned by the places directory."""
    id: str
    name: str
    coordinates: Optional[Coordinates] = None
    distance_meters: Optional[float] = None
    rating: float = 0.0
    review_count: int = 0
    price_level: int = 0  # Number of "$" signs, 0 when unknown
    categories: List[str] = field(default_factory=list)
    price: Optional[str] = None  # Raw "$$" string from the provider
    address: str = ""
    phone: str = ""
    image_url: str = ""
    url: str = ""


@dataclass(frozen=True)
class MatchScore:
    """Score of one (candidate, business) pair during geo matching."""
    candidate: TextCandidate
    business: GeoBusiness
    name_similarity: float
    distance_score: float
    combined: float


class MatchStrategy(Enum):
    """How a MatchResult was decided."""
    MATCHED = "matched"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class MatchResult:
    """Terminal decision of the geo name matcher."""
    business: Optional[GeoBusiness]
    confidence: float
    strategy_used: MatchStrategy
    candidates_tried: List[str] = field(default_factory=list)
    degraded: bool = False  # At least one search call failed


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """
    Outcome of a fail-soft external call.

    `value` always holds something usable (the call's default on failure);
    `error` is set when the call failed.
    """
    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Review:
    """A single business review."""
    text: str
    rating: Optional[float] = None


@dataclass(frozen=True)
class BusinessDetails:
    """Business details, either fetched or rebuilt from a search result."""
    name: str
    rating: float = 0.0
    review_count: int = 0
    categories: List[str] = field(default_factory=list)
    photos: List[str] = field(default_factory=list)
    price: Optional[str] = None
    from_search_result: bool = False


@dataclass(frozen=True)
class EnrichedProfile:
    """Review-derived intelligence about a business."""
    summary: str
    highlights: List[str] = field(default_factory=list)
    popular_dishes: List[str] = field(default_factory=list)
    dietary_labels: List[str] = field(default_factory=list)
    photos: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    rating: float = 0.0
    review_count: int = 0

    @property
    def review_highlights(self) -> str:
        return ". ".join(self.highlights)


class OptionSource(Enum):
    """Where a comparison option came from."""
    FREE_TEXT = "free_text"
    STRUCTURED = "structured"


@dataclass(frozen=True)
class StructuredOption:
    """A comparison side the caller has already split into parts."""
    restaurant: str
    dish: Optional[str] = None
    cost: Optional[float] = None


@dataclass(frozen=True)
class ParsedOption:
    """A comparison side after ingestion, regardless of its original shape."""
    restaurant: str
    dish: Optional[str] = None
    cost: Optional[float] = None
    source: OptionSource = OptionSource.FREE_TEXT
    raw: str = ""

    @property
    def label(self) -> str:
        return f"{self.dish} at {self.restaurant}" if self.dish else self.restaurant


OptionInput = Union[str, StructuredOption]


@dataclass(frozen=True)
class ComparisonOption:
    """One fully estimated side of a comparison."""
    restaurant_name: str
    price_level: str
    estimated_cost: float
    estimated_calories: int
    estimated_quantity: str
    value_score: int
    dish_name: Optional[str] = None
    restaurant_id: Optional[str] = None
    summary: str = ""
    categories: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.dish_name} at {self.restaurant_name}" if self.dish_name else self.restaurant_name


class ResolutionIssue(Enum):
    """Soft conditions absorbed into a result instead of raised."""
    NO_TEXT_DETECTED = "no_text_detected"
    NO_CANDIDATE_MATCH = "no_candidate_match"
    ENTITY_UNRESOLVED = "entity_unresolved"
    EXTERNAL_SERVICE_DEGRADED = "external_service_degraded"


class PipelineState(Enum):
    STARTED = "started"
    CANDIDATES_EXTRACTED = "candidates_extracted"
    SEARCHING = "searching"
    MATCHED = "matched"
    NO_MATCH = "no_match"
    ENRICHING = "enriching"
    COMPLETE = "complete"


def _to_plain(value: Any) -> Any:
    """Convert enums nested inside asdict() output to their values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class ComparisonResult:
    """Successful comparison of two options."""
    option1: ComparisonOption
    option2: ComparisonOption
    budget: float
    winner: str  # "option1", "option2" or "tie"
    better_calories: str
    better_quantity: str
    better_value: str
    personalized_reason: str
    issues: List[ResolutionIssue] = field(default_factory=list)
    success: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(asdict(self))


@dataclass(frozen=True)
class ComparisonError:
    """Returned (not raised) when one or both sides could not be resolved."""
    missing_restaurants: List[str]
    error: str
    issues: List[ResolutionIssue] = field(default_factory=list)
    success: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(asdict(self))


@dataclass(frozen=True)
class UserProfile:
    """User preferences consulted by the personalization merge."""
    user_id: str = ""
    favorites: List[str] = field(default_factory=list)  # Business ids
    dietary_preferences: List[str] = field(default_factory=list)
    liked_cuisines: List[str] = field(default_factory=list)
    past_visits: List[Dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class Personalization:
    is_favorite: bool = False
    cuisine_match_score: float = 0.0
    user_diet_match: str = ""
    personalized_recommendations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecognitionResult:
    """Unified payload of the camera recognition path."""
    ocr_text: str
    google_match: Optional[GeoBusiness]
    yelp_ai: Optional[EnrichedProfile]
    personalization: Personalization
    confidence_score: float
    state: PipelineState = PipelineState.COMPLETE
    states: List[PipelineState] = field(default_factory=list)
    candidates_tried: List[str] = field(default_factory=list)
    issues: List[ResolutionIssue] = field(default_factory=list)
    degraded: bool = False

    @property
    def message(self) -> str:
        if self.google_match is None:
            return "Could not identify this restaurant. Try getting closer or pointing at clearer signage."
        return f"Identified {self.google_match.name}"

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(asdict(self))


@dataclass(frozen=True)
class ComparisonRequest:
    """Two options and a budget pulled out of a chat message."""
    option1: ParsedOption
    option2: ParsedOption
    budget: float
