"""
Pydantic models for API request/response validation.
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict, model_validator


class FollowRequest(BaseModel):
    """Follow or unfollow a user."""

    model_config = ConfigDict(populate_by_name=True)
    user_id: int = Field(alias="userId")


class FollowResponse(BaseModel):
    """Result of a follow mutation."""

    message: str
    isFollowing: bool
    followersCount: int
    followingCount: int


class TeamFollowResponse(BaseModel):
    """Result of a team follow mutation."""

    message: str
    team_id: int
    isFollowing: bool
    followersCount: int


class PlayerProfileUpdate(BaseModel):
    """Partial update of the signed-in player's profile. Omitted fields are left alone."""

    model_config = ConfigDict(populate_by_name=True)
    title: Optional[str] = None
    description: Optional[str] = None
    position: Optional[str] = Field(default=None, alias="primaryPosition")
    strengths: Optional[List[str]] = None
    awards: Optional[List[str]] = Field(default=None, alias="awardsAchievements")
    hometown: Optional[str] = None
    high_school: Optional[str] = Field(default=None, alias="highSchool")
    previous_school: Optional[str] = Field(default=None, alias="previousSchool")
    instagram_url: Optional[str] = Field(default=None, alias="instaURL")
    x_url: Optional[str] = Field(default=None, alias="xURL")
    gpa: Optional[float] = Field(default=None, ge=0, le=5)
    sat: Optional[int] = Field(default=None, ge=400, le=1600)
    act: Optional[int] = Field(default=None, ge=1, le=36)
    transfer_status: Optional[str] = Field(default=None, alias="transferStatus")
    height: Optional[str] = None
    weight: Optional[str] = None
    commitment_status: Optional[str] = Field(default=None, alias="commitmentStatus")
    player_class: Optional[str] = Field(default=None, alias="playerClass")


class AwardRequest(BaseModel):
    """Award to add to or remove from a player profile."""

    award: Optional[str] = None


class StrengthRequest(BaseModel):
    """Strength to add to or remove from a player profile."""

    strength: Optional[str] = None


class RecruiterProfileUpdate(BaseModel):
    """Partial update of a coach or scout profile."""

    model_config = ConfigDict(populate_by_name=True)
    first_name: Optional[str] = Field(default=None, alias="firstName", max_length=191)
    last_name: Optional[str] = Field(default=None, alias="lastName", max_length=191)
    email: Optional[str] = None
    password: Optional[str] = None
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber", pattern=r"^\+?[1-9]\d{1,14}$")
    state: Optional[str] = None
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    # Coach only
    position: Optional[str] = None
    school_type: Optional[str] = Field(default=None, alias="schoolType")
    division: Optional[str] = None
    conference: Optional[str] = None
    school: Optional[str] = None
    organization: Optional[str] = None
    # Scout only
    team_id: Optional[int] = Field(default=None, alias="teamId")


class SavedFilterCreate(BaseModel):
    """Saved search filter payload."""

    model_config = ConfigDict(populate_by_name=True)
    name: str
    query_params: Dict[str, Any] = Field(default_factory=dict, alias="queryParams")
    hitting_stats: List[str] = Field(default_factory=list, alias="hittingStats")
    pitching_stats: List[str] = Field(default_factory=list, alias="pitchingStats")


class SavedFilterResponse(BaseModel):
    """A stored search filter."""

    id: int
    name: str
    query_params: Dict[str, Any]
    hitting_stats: List[str]
    pitching_stats: List[str]
    created_at: Optional[str] = None


class PendingRegistrationCreate(BaseModel):
    """Paid sign-up for a coach or scout."""

    model_config = ConfigDict(populate_by_name=True)
    first_name: str = Field(alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: str
    password: str
    role: str
    plan: Optional[str] = None
    state: Optional[str] = None
    profile_image: Optional[str] = Field(default=None, alias="profileImage")
    payment_provider: str = Field(default="stripe", alias="paymentProvider")
    team_id: Optional[int] = Field(default=None, alias="teamId")
    job_title: Optional[str] = Field(default=None, alias="jobTitle")
    school: Optional[str] = None
    division: Optional[str] = None
    conference: Optional[str] = None

    @model_validator(mode="after")
    def check_provider(self):
        if self.payment_provider not in ("stripe", "outseta"):
            raise ValueError("paymentProvider must be 'stripe' or 'outseta'")
        return self


class PendingRegistrationResponse(BaseModel):
    """Created pending registration and where to pay for it."""

    id: int
    email: str
    role: str
    plan: Optional[str] = None
    status: str
    checkoutSessionId: Optional[str] = None
    checkoutUrl: Optional[str] = None


class WebhookAck(BaseModel):
    """Acknowledgement returned to billing providers."""

    received: bool = True


class CsvImportResponse(BaseModel):
    """Outcome of a CSV import."""

    message: str
    results: Dict[str, Any]
