from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class IngestRules(BaseModel):
    flush_delay_ms: int = Field(5000, ge=0)


class RetentionRules(BaseModel):
    raw_hours: int = Field(24, ge=1)
    aggregated_hours: int = Field(8760, ge=1)


class AggregationRules(BaseModel):
    interval_ms: int = Field(3_600_000, gt=0)
    retention_sweep_interval_ms: int = Field(86_400_000, gt=0)


class StatsRules(BaseModel):
    default_period: str = "7d"
    max_limit: int = Field(100, ge=1)


class CorsRules(BaseModel):
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_credentials: bool = False


class Rules(BaseModel):
    project: ProjectRules
    ingest: IngestRules = Field(default_factory=IngestRules)
    retention: RetentionRules = Field(default_factory=RetentionRules)
    aggregation: AggregationRules = Field(default_factory=AggregationRules)
    stats: StatsRules = Field(default_factory=StatsRules)
    cors: CorsRules = Field(default_factory=CorsRules)
