"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from domain.contact import ContactInteraction
from domain.rating import RatingStatus, SellerRating


# ============================================================================
# Contact Models
# ============================================================================

class ContactRequest(BaseModel):
    """Request to record that the current subject contacted a seller."""
    seller_id: str = Field(..., min_length=1, description="Seller (merchant) being contacted")
    request_id: Optional[str] = Field(None, description="Search/request the contact belongs to")

    class Config:
        json_schema_extra = {
            "example": {
                "seller_id": "c0a8012e-7b1f-4f0e-9a52-8f3b2b1d6c11",
                "request_id": "5f1d7a52-0b7e-4c55-8d0f-3f5c3c1e2a90"
            }
        }


class ContactResponse(BaseModel):
    """
    Result of contact tracking.

    Always returned with HTTP 200: tracking problems are reported through
    `tracked=false` and `warning` so the client still opens the contact channel.
    """
    subject_id: Optional[str] = None
    tracked: bool
    created: bool = False
    deduplicated: bool = False
    contact_id: Optional[str] = None
    warning: Optional[str] = None


class ContactInteractionResponse(BaseModel):
    id: str
    seller_id: str
    request_id: Optional[str] = None
    contacted_at: datetime
    rating_prompted: bool
    rating_completed: bool

    @staticmethod
    def from_domain(contact: ContactInteraction) -> "ContactInteractionResponse":
        return ContactInteractionResponse(
            id=contact.id,
            seller_id=contact.seller_id,
            request_id=contact.request_id,
            contacted_at=contact.contacted_at,
            rating_prompted=contact.rating_prompted,
            rating_completed=contact.rating_completed,
        )


# ============================================================================
# Rating Models
# ============================================================================

class RatingSubmitRequest(BaseModel):
    """Rating submission; range and length rules are enforced by the rating ledger."""
    rating: int = Field(..., description="Whole number from 1 to 5")
    review_text: Optional[str] = Field(None, description="Optional review, at most 500 characters")
    request_id: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "rating": 4,
                "review_text": "Quick replies, item as described.",
                "request_id": "5f1d7a52-0b7e-4c55-8d0f-3f5c3c1e2a90"
            }
        }


class RatingCancelRequest(BaseModel):
    request_id: Optional[str] = None


class RatingResponse(BaseModel):
    id: str
    seller_id: str
    request_id: Optional[str] = None
    rating: int
    review_text: Optional[str] = None
    can_be_cancelled: bool
    is_cancelled: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @staticmethod
    def from_domain(rating: SellerRating) -> "RatingResponse":
        return RatingResponse(
            id=rating.id,
            seller_id=rating.seller_id,
            request_id=rating.request_id,
            rating=rating.rating,
            review_text=rating.review_text,
            can_be_cancelled=rating.can_be_cancelled,
            is_cancelled=rating.is_cancelled,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
        )


class RatingStatusResponse(BaseModel):
    state: str
    rating: Optional[RatingResponse] = None
    can_rate: bool
    can_cancel: bool

    @staticmethod
    def from_domain(status: RatingStatus) -> "RatingStatusResponse":
        return RatingStatusResponse(
            state=status.state.value,
            rating=RatingResponse.from_domain(status.rating) if status.rating else None,
            can_rate=status.can_rate,
            can_cancel=status.can_cancel,
        )


class SellerRatingsResponse(BaseModel):
    seller_id: str
    ratings: List[RatingResponse]
    total_count: int
    average_rating: Optional[float] = None


# ============================================================================
# Prompt Models
# ============================================================================

class PromptResponse(BaseModel):
    """The single prompt to show now, if any."""
    contact: Optional[ContactInteractionResponse] = None
    poll_interval_minutes: int = Field(..., description="How long the client should wait before polling again")


class PromptActionResponse(BaseModel):
    contact_id: str
    persisted: bool


# ============================================================================
# Analytics Models
# ============================================================================

class UserActionRequest(BaseModel):
    event_type: str = Field(..., min_length=1)
    event_details: Dict[str, Any] = Field(default_factory=dict)
    event_description: str = ""
    page_url: str = ""


class UserActionResponse(BaseModel):
    status: str
    reason: Optional[str] = None


class MerchantMatchRequest(BaseModel):
    request_id: Optional[str] = None


class MerchantStatsResponse(BaseModel):
    merchant_id: str
    total_matches: int
    total_contacts: int
    match_to_contact_ratio: float
    recent_matches: int
    recent_contacts: int


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "not_contacted",
                "detail": "You can only rate merchants you have contacted",
                "status_code": 403
            }
        }
