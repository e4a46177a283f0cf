"""Metric value types shared by the catalogs and the registries."""

from dataclasses import dataclass, field
from typing import Mapping

from pydantic import BaseModel, ConfigDict


class GaugeSpec(BaseModel):
    """Declaration of one gauge family."""

    model_config = ConfigDict(frozen=True)

    name: str
    help: str
    labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class Observation:
    """One decoded value destined for a gauge."""

    metric: str
    value: float
    labels: Mapping[str, str] = field(default_factory=dict)
