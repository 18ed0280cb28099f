from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field


Role = Literal["owner", "commissioner", "admin"]
SelectionSource = Literal["set", "view", "preference", "session", "default"]


class Franchise(BaseModel):
    id: str
    name: str
    abbrev: Optional[str] = None
    # AFL only
    conference_id: Optional[str] = None
    competition_id: Optional[str] = None


class LeagueAssets(BaseModel):
    namespace: str
    league_id: Optional[str] = None
    season: Optional[int] = None
    pulled_at: Optional[datetime] = None
    franchises: List[Franchise] = Field(default_factory=list)


class TeamPreference(BaseModel):
    franchise_id: str = Field(alias="franchiseId")
    # ISO-8601 string; epoch milliseconds also accepted on read
    last_updated: Union[str, int] = Field(alias="lastUpdated")
    # AFL only
    conference_id: Optional[str] = Field(None, alias="conferenceId")
    competition_id: Optional[str] = Field(None, alias="competitionId")

    model_config = {"populate_by_name": True}


class SessionData(BaseModel):
    user_id: str
    username: str
    franchise_id: str = ""
    league_id: str = ""
    role: Role = "owner"
    issued_at: int
    expires_at: int


class MflLoginResult(BaseModel):
    success: bool
    user_id: Optional[str] = None
    username: Optional[str] = None
    franchise_id: Optional[str] = None
    league_id: Optional[str] = None
    role: Optional[str] = None
    error: Optional[str] = None
    raw_response: Optional[Dict[str, Any]] = None


class Selection(BaseModel):
    franchise_id: str
    source: SelectionSource
