from agromarket.models.contract_models import Contract
from agromarket.services.contract_service import ContractService
from agromarket.services.dashboard_service import DashboardService, group_by_status
from agromarket.services.listing_service import ListingService
from conftest import insert_listing


def _contract(i, status):
    return Contract(
        id=f"c{i}", cropName="Okra", farmerId="FRM1", buyerId="BUY1",
        quantity=1, price=1, status=status, paymentStatus="pending",
    )


def test_every_contract_lands_in_exactly_one_bucket():
    statuses = ["pending", "active", "active", "completed", "cancelled", "pending", "pending"]
    contracts = [_contract(i, s) for i, s in enumerate(statuses)]

    buckets = group_by_status(contracts)
    assert list(buckets) == ["active", "pending", "completed", "cancelled"]
    assert {s: len(rows) for s, rows in buckets.items()} == {
        "active": 2, "pending": 3, "completed": 1, "cancelled": 1,
    }
    ids = [c.id for rows in buckets.values() for c in rows]
    assert sorted(ids) == sorted(c.id for c in contracts)


def test_farmer_dashboard(ctx, db, farmer, buyer):
    listing_id = insert_listing(db, availableQuantity=100, minPrice=30)
    pending = ContractService.propose_contract(buyer, listing_id, {"quantity": 10, "price": 30})["contract"]
    accepted = ContractService.propose_contract(buyer, listing_id, {"quantity": 5, "price": 32})["contract"]
    ContractService.transition(farmer, accepted.id, "accept")

    data = DashboardService.build_dashboard(farmer)
    assert data.counts.pending == 1
    assert data.counts.active == 1
    assert data.counts.total == 2

    row = data.buckets["pending"][0]
    assert row.contract.id == pending.id
    assert row.counterpart_name == buyer.full_name
    assert row.actions == ["accept", "decline"]
    assert data.buckets["active"][0].actions == ["deliver"]

    assert len(data.listings) == 1
    assert data.listings[0]["availableQuantity"] == 95
    assert data.listings[0]["totalValue"] == 95 * 30


def test_malformed_listing_does_not_break_farmer_dashboard(ctx, db, farmer):
    insert_listing(db, cropName="Good Garlic")
    bad_id = str(db.listings.insert_one({"farmerId": farmer.user_id, "cropName": "No Price"}).inserted_id)

    data = DashboardService.build_dashboard(farmer)
    assert [l["cropName"] for l in data.listings] == ["Good Garlic"]
    assert ListingService.get_listing(bad_id) == (None, "Listing record is malformed")


def test_buyer_dashboard_to_dict(ctx, db, farmer, buyer):
    listing_id = insert_listing(db)
    ContractService.propose_contract(buyer, listing_id, {"quantity": 10, "price": 25})

    out = DashboardService.build_dashboard(buyer).to_dict()
    assert out["role"] == "buyer"
    assert out["counts"] == {"active": 0, "pending": 1, "completed": 0, "cancelled": 0, "total": 1}
    row = out["buckets"]["pending"][0]
    assert row["totalValue"] == 250
    assert row["counterpartName"] == farmer.full_name
    assert row["actions"] == ["cancel"]
    assert out["listings"] == []
    assert out["degraded"] is False
