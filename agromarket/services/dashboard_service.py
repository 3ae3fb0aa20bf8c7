# agromarket/services/dashboard_service.py

from typing import Dict, Iterable, List

from agromarket.models.contract_models import STATUSES, Contract
from agromarket.models.dashboard_models import ContractRow, DashboardData, StatusCounts
from agromarket.services.contract_lifecycle import available_actions
from agromarket.services.contract_service import ContractService
from agromarket.services.listing_service import ListingService


def group_by_status(contracts: Iterable[Contract]) -> Dict[str, List[Contract]]:
    """Partition contracts into the four status buckets (every contract lands in exactly one)."""
    buckets: Dict[str, List[Contract]] = {s: [] for s in STATUSES}
    for c in contracts:
        buckets[c.status].append(c)
    return buckets


class DashboardService:

    @staticmethod
    def build_dashboard(market_session) -> DashboardData:
        contracts, degraded = ContractService.list_for(market_session)
        role = market_session.role

        data = DashboardData(role=role, degraded=degraded)
        for status, rows in group_by_status(contracts).items():
            data.buckets[status] = [
                ContractRow(
                    contract=c,
                    counterpart_name=c.buyerName if role == "farmer" else c.farmerName,
                    actions=available_actions(c, role),
                )
                for c in rows
            ]

        data.counts = StatusCounts(**{s: len(data.buckets[s]) for s in STATUSES})

        if market_session.is_farmer:
            data.listings = [
                {**l.model_dump(mode="json"), "totalValue": l.total_value}
                for l in ListingService.listings_for_farmer(market_session.user_id)
            ]

        return data
