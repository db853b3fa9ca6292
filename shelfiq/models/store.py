from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from shelfiq.utils.constants import DEFAULT_DATE_RANGE, DEFAULT_STORE_ID, NEUTRAL_MULTIPLIER

@dataclass(frozen=True)
class Store:
    """Static store reference entry"""
    id: str
    name: str
    location: str

@dataclass(frozen=True)
class Filters:
    """Store and date range selection for filtered views"""
    store_id: str = DEFAULT_STORE_ID
    date_range: str = DEFAULT_DATE_RANGE

@dataclass
class MultiplierTable:
    """Lookup of scaling factors; unknown keys resolve to the neutral multiplier"""
    values: Dict[str, float] = field(default_factory=dict)
    default: float = NEUTRAL_MULTIPLIER

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, float]]) -> "MultiplierTable":
        return cls({str(k): float(v) for k, v in (mapping or {}).items()})

    def get(self, key: Optional[str]) -> float:
        if key is None:
            return self.default
        return self.values.get(str(key), self.default)

    def __contains__(self, key) -> bool:
        return str(key) in self.values

    def keys(self):
        return self.values.keys()
