from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


# ----------------- METRICS ---------------------


class MetricEuclideanModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["euclidean"] = "euclidean"


class MetricManhattanModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["manhattan"] = "manhattan"


class MetricHaversineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["haversine"] = "haversine"
    radius_m: float = 6_371_008.8

    @field_validator("radius_m")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("radius_m must be > 0")
        return v


MetricUnion = Annotated[
    MetricEuclideanModel | MetricManhattanModel | MetricHaversineModel,
    Field(discriminator="kind"),
]

# ----------------- TOPOLOGY ---------------------


class TopologyModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    track: bool = True  # register half-nodes for every node, not only switched ones
    repair: Literal["on_demand", "eager"] = "on_demand"


# ------------------------------------------------------------------


class NetworkModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "network"
    metric: MetricUnion = Field(default_factory=MetricEuclideanModel)
    topology: TopologyModel = TopologyModel()
    log: LogModel = LogModel()
