"""Pydantic models for scores and the emitted result records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ScoreSet(BaseModel):
    """All scores for one package, built once by the aggregator."""

    model_config = ConfigDict(frozen=True)

    ramp_up: float
    bus_factor: float
    correctness: float
    responsive_maintainer: float
    has_license: bool
    net_score: float


class ResultRecord(BaseModel):
    """One line of NDJSON output."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(alias="URL")
    net_score: float = Field(alias="NET_SCORE")
    ramp_up_score: float = Field(alias="RAMP_UP_SCORE")
    correctness_score: float = Field(alias="CORRECTNESS_SCORE")
    bus_factor_score: float = Field(alias="BUS_FACTOR_SCORE")
    responsive_maintainer_score: float = Field(alias="RESPONSIVE_MAINTAINER_SCORE")
    license_score: int = Field(alias="LICENSE_SCORE", ge=0, le=1)

    @classmethod
    def from_scores(cls, url: str, scores: ScoreSet) -> ResultRecord:
        return cls(
            url=url,
            net_score=scores.net_score,
            ramp_up_score=scores.ramp_up,
            correctness_score=scores.correctness,
            bus_factor_score=scores.bus_factor,
            responsive_maintainer_score=scores.responsive_maintainer,
            license_score=int(scores.has_license),
        )

    def to_line(self) -> str:
        """Serialize as a single JSON line keyed by the upper-case field names."""
        return self.model_dump_json(by_alias=True)
