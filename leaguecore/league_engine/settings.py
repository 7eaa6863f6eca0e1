"""Per-league roster and rule settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class LeagueSettings(BaseModel):
    """Roster-size counts and trade/draft rules for one league.

    Stored as JSON on the league row; `from_json` validates on read.
    """

    qb_count: int = Field(default=1, ge=0, description="QB starter slots")
    rb_count: int = Field(default=2, ge=0, description="RB starter slots")
    wr_count: int = Field(default=2, ge=0, description="WR starter slots")
    te_count: int = Field(default=1, ge=0, description="TE starter slots")
    flex_count: int = Field(default=1, ge=0, description="FLEX (RB/WR/TE) starter slots")
    k_count: int = Field(default=1, ge=0, description="Kicker starter slots")
    def_count: int = Field(default=1, ge=0, description="Team defense starter slots")
    bench_count: int = Field(default=7, ge=0, description="Bench slots")
    ir_count: int = Field(default=2, ge=0, description="Injured reserve slots")

    scoring_format: Literal["standard", "half_ppr", "ppr"] = "standard"
    trades_enabled: bool = True
    trade_deadline_week: Optional[int] = Field(
        default=None, ge=1, le=17, description="Last week trades may be proposed"
    )
    draft_timer_seconds: int = Field(
        default=120, ge=1, description="Seconds on the pick clock"
    )

    @property
    def starter_count(self) -> int:
        return (
            self.qb_count
            + self.rb_count
            + self.wr_count
            + self.te_count
            + self.flex_count
            + self.k_count
            + self.def_count
        )

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str | None) -> LeagueSettings:
        if not raw:
            return cls()
        return cls.model_validate_json(raw)
