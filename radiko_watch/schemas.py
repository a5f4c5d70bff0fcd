from pydantic import BaseModel, Field, field_validator
from zoneinfo import ZoneInfo


def validate_timezone_name(v: str) -> str:
    """Validate timezone string"""
    if v == "UTC":
        return v
    try:
        # Check if timezone is valid
        ZoneInfo(v)
        return v
    except (KeyError, ValueError):
        raise ValueError(f"Invalid timezone: {v}. Must be a valid IANA timezone (e.g., 'Asia/Tokyo') or 'UTC'")


class ArtistProgramsRequest(BaseModel):
    """Matched program query for one artist"""
    artist: str = Field(..., min_length=1, description="Group or member name as stored by the matcher")
    timezone: str = Field(default="Asia/Tokyo", description="Timezone for response timestamps (e.g., 'UTC', 'Asia/Tokyo')")
    include_expired: bool = Field(default=False, description="Include documents past their retention marker")

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        return validate_timezone_name(v)


class OnAirTrackResponse(BaseModel):
    """Music cue played during a program"""
    artist_name: str
    track_title: str
    artwork_url: str
    offset_from_start: int = Field(..., description="Seconds from program start")


class MatchedProgramResponse(BaseModel):
    """Single stored program"""
    station_id: str
    station_name: str
    program_id: int
    title: str
    start_time: str
    end_time: str
    duration: int = Field(..., description="Duration in seconds")
    info: str | None
    description: str | None
    performers: str | None
    image_url: str | None
    app_url: str
    expire_at: str
    on_air_music: list[OnAirTrackResponse]


class ArtistSummary(BaseModel):
    """Stored program count for one artist"""
    artist: str
    programs: int


class ArtistListResponse(BaseModel):
    timestamp: str
    artists: list[ArtistSummary]


class ArtistProgramsResponse(BaseModel):
    """Matched programs for one artist"""
    timestamp: str
    timezone: str = Field(..., description="Timezone used for all timestamps in response")
    artist: str
    total_programs: int
    programs: list[MatchedProgramResponse]
