# agromarket/models/dashboard_models.py

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List

from agromarket.models.contract_models import STATUSES, Contract


@dataclass
class ContractRow:
    contract: Contract
    counterpart_name: str = ""
    actions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d = self.contract.model_dump(mode="json")
        d["totalValue"] = self.contract.total_value
        d["counterpartName"] = self.counterpart_name
        d["actions"] = list(self.actions)
        return d


@dataclass
class StatusCounts:
    active: int = 0
    pending: int = 0
    completed: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.active + self.pending + self.completed + self.cancelled


@dataclass
class DashboardData:
    role: str
    buckets: Dict[str, List[ContractRow]] = field(
        default_factory=lambda: {s: [] for s in STATUSES}
    )
    counts: StatusCounts = field(default_factory=StatusCounts)
    listings: List[Dict[str, Any]] = field(default_factory=list)
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "counts": {**asdict(self.counts), "total": self.counts.total},
            "buckets": {s: [r.to_dict() for r in rows] for s, rows in self.buckets.items()},
            "listings": self.listings,
            "degraded": self.degraded,
        }
