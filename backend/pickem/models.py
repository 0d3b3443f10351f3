from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint


class Team(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    slug: Optional[str] = Field(default=None, index=True)
    region: Optional[str] = None
    logo_url: Optional[str] = None


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    name: str
    slug: str = Field(index=True, unique=True)
    status: str = Field(default="upcoming", index=True)  # upcoming/active/finished

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # {"winner": 1, "exact": 3, "underdog_25": 2, "underdog_50": 1}
    scoring_rules_json: str = Field(default="{}")


class Stage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str

    # overrides Tournament.scoring_rules_json when set
    scoring_rules_json: Optional[str] = None


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    stage_id: Optional[int] = Field(default=None, foreign_key="stage.id", index=True)

    label: str = Field(default="")
    name: Optional[str] = None

    team_a_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team_b_id: Optional[int] = Field(default=None, foreign_key="team.id")
    label_team_a: Optional[str] = None  # e.g. "Winner of QF1" while unresolved
    label_team_b: Optional[str] = None

    status: str = Field(default="scheduled", index=True)  # scheduled/live/finished
    winner_id: Optional[int] = Field(default=None, foreign_key="team.id")
    score_a: Optional[int] = None
    score_b: Optional[int] = None

    underdog_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    underdog_tier: Optional[int] = None  # 1 = <=25% of picks, 2 = <50%

    round_index: int = Field(default=0)
    bracket_side: Optional[str] = None  # upper/lower/grand_final/groups
    display_order: int = Field(default=0)
    slot_role: Optional[str] = None  # opening/winners/elimination/decider (GSL groups)

    # backward links: which match feeds each slot, and whether its winner or loser
    team_a_previous_match_id: Optional[int] = Field(default=None, foreign_key="match.id", index=True)
    team_a_previous_match_result: Optional[str] = None  # "winner" | "loser"
    team_b_previous_match_id: Optional[int] = Field(default=None, foreign_key="match.id", index=True)
    team_b_previous_match_result: Optional[str] = None

    finished_at: Optional[datetime] = None


class Bet(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("match_id", "user_id", name="uq_bet_match_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    user_id: str = Field(index=True)

    predicted_winner_id: Optional[int] = Field(default=None, foreign_key="team.id")
    predicted_score_a: int = Field(default=0, ge=0)
    predicted_score_b: int = Field(default=0, ge=0)

    # written by settlement only
    points_earned: float = Field(default=0)  # rules may be fractional
    is_perfect_pick: bool = Field(default=False)
    is_underdog_pick: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
