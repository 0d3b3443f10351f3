from __future__ import annotations

from pydantic import BaseModel, Field


class LoginBody(BaseModel):
    password: str = ""


class MatchResultBody(BaseModel):
    score_a: int = Field(ge=0)
    score_b: int = Field(ge=0)
    winner_id: int | None = None


class ScoringPreviewBody(BaseModel):
    match_id: int
    predicted_score_a: int = Field(ge=0)
    predicted_score_b: int = Field(ge=0)


class ScoringRulesBody(BaseModel):
    winner: float | None = None
    exact: float | None = None
    underdog_25: float | None = None
    underdog_50: float | None = None
