from dataclasses import dataclass, replace
from enum import Enum

class TrafficLevel(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

@dataclass
class HeatmapZone:
    """Floor zone with foot traffic and sales performance (both 0-100)"""
    zone: str
    category: str
    traffic: TrafficLevel
    traffic_score: int
    performance: int
    x: int
    y: int

    def with_scores(self, traffic_score: int, performance: int) -> "HeatmapZone":
        return replace(self, traffic_score=traffic_score, performance=performance)
