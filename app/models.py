"""Pydantic models for the prospect list generation service.

Request models use camelCase aliases to match the front-end payloads of the
"generate AI list" modal. Candidate and preview models keep snake_case keys,
which is the shape the modal already renders.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(word.capitalize() for word in components[1:])


# Columns a caller may select when importing a previewed list
PROSPECT_COLUMNS: tuple[str, ...] = (
    "name",
    "email",
    "phone",
    "address",
    "website",
    "description",
    "category",
)

MIN_TARGET_COUNT = 10
MAX_TARGET_COUNT = 500


class ProspectCandidate(BaseModel):
    """Prospect record produced by the extraction pipeline.

    Candidates are transient: they live in memory for one generation run and
    are either returned as a preview or converted into list rows on import.

    Attributes:
        name: Business or person name.
        email: Contact email, kept only if it matches the email pattern.
        phone: French phone number (+33 or leading 0 followed by 9 digits).
        address: Free-text postal address.
        website: Absolute http(s) URL.
        description: Free-text description taken from a labeled line.
        category: Echo of the requested industry.
        source: Tag of the fetcher/category that produced the candidate.
        confidence_score: Plausibility score, clamped to [0.1, 1.0] once validated.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    source: str = Field(..., min_length=1, description="Tag of the producing source")
    confidence_score: float = Field(default=0.5, description="Plausibility score")

    @property
    def has_contact_info(self) -> bool:
        """Check if at least one contact channel is populated."""
        return bool(self.email or self.phone or self.website)


class PreviewResult(BaseModel):
    """Outcome of one generation run, returned to the caller as data."""

    prospects: list[ProspectCandidate] = Field(default_factory=list)
    sources_used: list[str] = Field(default_factory=list)
    total_found: int = 0
    errors: list[str] = Field(default_factory=list)


class GenerationRequest(BaseModel):
    """Request model for the generate-ai-list route.

    Attributes:
        industry: Industry label, e.g. "Technologie & IT".
        location: Free-text location, e.g. "Lyon, France".
        target_count: Number of prospects wanted (10-500).
        list_name: Name of the list created on import.
        preview: When true, run the pipeline and return a preview.
        selected_columns: Columns to keep when importing.
        preview_data: Previously returned preview, required for import.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    industry: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    target_count: int = Field(..., ge=MIN_TARGET_COUNT, le=MAX_TARGET_COUNT)
    list_name: str = Field(..., min_length=1, max_length=200)
    preview: bool = False
    selected_columns: Optional[dict[str, bool]] = None
    preview_data: Optional[PreviewResult] = None

    @field_validator("industry", "location", "list_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only strings."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("selected_columns")
    @classmethod
    def validate_columns(cls, v: Optional[dict[str, bool]]) -> Optional[dict[str, bool]]:
        """Only known prospect columns may be selected."""
        if v is None:
            return v
        unknown = sorted(set(v) - set(PROSPECT_COLUMNS))
        if unknown:
            raise ValueError(f"unknown columns: {', '.join(unknown)}")
        return v


class GenerationPreviewResponse(BaseModel):
    """Response body for preview mode."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )

    success: bool = True
    preview_data: PreviewResult


class GenerationImportResponse(BaseModel):
    """Response body for import mode."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        serialize_by_alias=True,
    )

    success: bool = True
    list_id: str
    generated_count: int
    sources_used: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    message: str
