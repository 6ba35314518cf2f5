"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from domain.model.tour import Difficulty, Tour
from domain.model.user import Role, User


def envelope(results: Optional[int] = None, **data: Any) -> dict[str, Any]:
    """Wrap payload in the success envelope: {status, results?, data}."""
    body: dict[str, Any] = {"status": "success"}
    if results is not None:
        body["results"] = results
    body["data"] = data
    return body


# ── users ────────────────────────────────────────────────


class UserResponse(BaseModel):
    """Public view of a user. Credentials and soft-delete state never leave the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="User ID")
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls.model_validate(user)


class SignupRequest(BaseModel):
    """Request model for user registration."""
    name: str
    email: EmailStr
    password: str
    password_confirm: str


class LoginRequest(BaseModel):
    """Request model for user login. Missing fields are reported by the service."""
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str
    password_confirm: str


class UpdatePasswordRequest(BaseModel):
    password_current: str
    password: str
    password_confirm: str


class UpdateMeRequest(BaseModel):
    """Profile update. Password fields are accepted only so they can be refused."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    password_confirm: Optional[str] = None


class UserUpdateRequest(UpdateMeRequest):
    """Admin update; adds role."""
    role: Optional[str] = None


class AuthResponse(BaseModel):
    """Response model for authentication."""
    status: str = "success"
    token: str
    data: dict[str, UserResponse]

    @classmethod
    def for_user(cls, token: str, user: User) -> "AuthResponse":
        return cls(token=token, data={"user": UserResponse.from_domain(user)})


# ── tours ────────────────────────────────────────────────


class TourResponse(BaseModel):
    """Response model for a single tour."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Tour ID")
    name: str
    slug: str
    duration: int
    max_group_size: int
    difficulty: Difficulty
    ratings_average: float
    ratings_quantity: int
    price: float
    price_discount: Optional[float] = None
    summary: str
    description: str
    image_cover: str
    images: list[str] = Field(default_factory=list)
    start_dates: list[datetime] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_domain(cls, tour: Tour) -> "TourResponse":
        return cls.model_validate(tour)


class TourRequest(BaseModel):
    """Create or partial update of a tour.

    Everything is optional at this layer; required fields and value ranges
    are checked by the tour service so all violations are reported together.
    """
    name: Optional[str] = None
    duration: Optional[int] = None
    max_group_size: Optional[int] = None
    difficulty: Optional[str] = None
    ratings_average: Optional[float] = None
    ratings_quantity: Optional[int] = None
    price: Optional[float] = None
    price_discount: Optional[float] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    image_cover: Optional[str] = None
    images: Optional[list[str]] = None
    start_dates: Optional[list[datetime]] = None


class DifficultyStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    difficulty: str
    num_tours: int
    num_ratings: int
    avg_rating: float
    avg_price: float
    min_price: float
    max_price: float


class MonthlyPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: int = Field(..., ge=1, le=12)
    num_tour_starts: int
    tours: list[str]
