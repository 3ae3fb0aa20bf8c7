# agromarket/services/listing_service.py

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from bson import ObjectId
from flask import current_app
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from agromarket.errors import field_errors
from agromarket.models.listing_models import Listing, ListingCreate, ListingFeed
from agromarket.mongo_safe import get_col

SAMPLE_PREFIX = "sample-"
DEGRADED_NOTICE = "Unable to connect to database. Showing sample data instead."


def _sample_docs() -> List[dict]:
    now = datetime.now(timezone.utc)
    return [
        {
            "farmerId": "sample1",
            "farmerName": "Rajesh Kumar",
            "cropName": "Organic Tomatoes",
            "cropCategory": "Vegetables",
            "availableQuantity": 500,
            "minPrice": 25,
            "description": "Fresh organic tomatoes grown without pesticides. Ideal for restaurants "
                           "and food processors looking for quality produce.",
            "location": "Nashik, Maharashtra",
            "harvestDate": (now + timedelta(days=15)).date().isoformat(),
            "createdAt": now,
        },
        {
            "farmerId": "sample2",
            "farmerName": "Anita Patel",
            "cropName": "Basmati Rice",
            "cropCategory": "Grains",
            "availableQuantity": 1000,
            "minPrice": 60,
            "description": "Premium quality basmati rice with exceptional aroma. Long grain variety "
                           "suitable for export and premium restaurants.",
            "location": "Karnal, Haryana",
            "harvestDate": (now + timedelta(days=45)).date().isoformat(),
            "createdAt": now,
        },
        {
            "farmerId": "sample3",
            "farmerName": "Mohammed Khan",
            "cropName": "Alphonso Mangoes",
            "cropCategory": "Fruits",
            "availableQuantity": 300,
            "minPrice": 200,
            "description": "The king of mangoes! Premium Alphonso mangoes known for their sweet taste "
                           "and aromatic flavor. Perfect for direct consumption and pulp production.",
            "location": "Ratnagiri, Maharashtra",
            "harvestDate": (now + timedelta(days=30)).date().isoformat(),
            "createdAt": now,
        },
    ]


def sample_listings() -> List[Listing]:
    return [
        Listing(id=f"{SAMPLE_PREFIX}{i}", isSample=True, **doc)
        for i, doc in enumerate(_sample_docs())
    ]


def filter_listings(listings: Iterable[Listing], search: Optional[str] = None,
                    category: Optional[str] = None) -> List[Listing]:
    """
    Case-insensitive substring match on crop name, farmer name and
    description, intersected with an exact category match.
    """
    result = list(listings)

    term = (search or "").strip().lower()
    if term:
        result = [
            l for l in result
            if term in l.cropName.lower()
            or term in l.farmerName.lower()
            or term in l.description.lower()
        ]

    if category and category != "all":
        result = [l for l in result if l.cropCategory == category]

    return result


class ListingService:

    @staticmethod
    def _collection():
        return get_col("listings")

    @staticmethod
    def list_listings() -> ListingFeed:
        """
        All listings, newest first. An empty store yields the sample set;
        an unreachable store yields the sample set flagged as degraded.
        """
        col = ListingService._collection()
        if col is None:
            return ListingFeed(sample_listings(), source="sample", degraded=True, notice=DEGRADED_NOTICE)

        try:
            docs = list(col.find({}).sort("createdAt", -1))
        except PyMongoError as e:
            current_app.logger.error("Error fetching listings: %s", e)
            return ListingFeed(sample_listings(), source="sample", degraded=True, notice=DEGRADED_NOTICE)

        listings = []
        for d in docs:
            try:
                listings.append(Listing.from_doc(d))
            except ValidationError as e:
                current_app.logger.warning("Skipping malformed listing %s: %s", d.get("_id"), e)

        if not listings:
            return ListingFeed(sample_listings(), source="sample")
        return ListingFeed(listings)

    @staticmethod
    def get_listing(listing_id: str):
        """Returns (listing, error) with error set when not found / unreadable."""
        if listing_id.startswith(SAMPLE_PREFIX):
            for l in sample_listings():
                if l.id == listing_id:
                    return l, None
            return None, "Listing not found"

        if not ObjectId.is_valid(listing_id):
            return None, "Invalid listing id"

        col = ListingService._collection()
        if col is None:
            return None, "Listing store is unavailable"

        try:
            doc = col.find_one({"_id": ObjectId(listing_id)})
        except PyMongoError as e:
            current_app.logger.error("Error fetching listing %s: %s", listing_id, e)
            return None, "Listing store is unavailable"

        if not doc:
            return None, "Listing not found"
        try:
            return Listing.from_doc(doc), None
        except ValidationError as e:
            current_app.logger.warning("Malformed listing %s: %s", listing_id, e)
            return None, "Listing record is malformed"

    @staticmethod
    def listings_for_farmer(farmer_id: str) -> List[Listing]:
        col = ListingService._collection()
        if col is None:
            return []
        try:
            docs = list(col.find({"farmerId": farmer_id}).sort("createdAt", -1))
        except PyMongoError as e:
            current_app.logger.error("Error fetching listings for %s: %s", farmer_id, e)
            return []

        listings = []
        for d in docs:
            try:
                listings.append(Listing.from_doc(d))
            except ValidationError as e:
                current_app.logger.warning("Skipping malformed listing %s: %s", d.get("_id"), e)
        return listings

    @staticmethod
    def create_listing(farmer_id: str, farmer_name: str, payload: dict):
        """Validate and insert a listing for ``farmer_id``."""
        try:
            data = ListingCreate(**(payload or {}))
        except ValidationError as e:
            return {"error": "Please correct the highlighted fields.", "fields": field_errors(e), "code": 400}

        col = ListingService._collection()
        if col is None:
            return {"error": "Listing store is unavailable", "code": 503}

        doc = {
            "farmerId": farmer_id,
            "farmerName": farmer_name,
            "cropName": data.cropName,
            "cropCategory": data.cropCategory,
            "availableQuantity": data.availableQuantity,
            "minPrice": data.minPrice,
            "description": data.description,
            "location": data.location,
            "harvestDate": data.harvestDate.isoformat(),
            "createdAt": datetime.now(timezone.utc),
        }

        try:
            inserted = col.insert_one(doc)
        except PyMongoError as e:
            current_app.logger.error("Error creating listing: %s", e)
            return {"error": "Failed to create listing. Please try again.", "code": 503}

        return {"ok": True, "listing_id": str(inserted.inserted_id)}

    @staticmethod
    def seed_samples() -> int:
        """Insert the sample set into an empty store. Returns how many were added."""
        col = ListingService._collection()
        if col is None:
            raise RuntimeError("Mongo is not available")
        if col.count_documents({}) > 0:
            return 0
        return len(col.insert_many(_sample_docs()).inserted_ids)

    @staticmethod
    def reserve_stock(listing_id: Optional[str], quantity: float) -> Optional[bool]:
        """
        Atomically decrement availableQuantity when enough stock remains.
        Returns True/False, or None when the listing isn't in the store.
        """
        if not listing_id or not ObjectId.is_valid(listing_id):
            return None
        col = ListingService._collection()
        if col is None:
            return None
        oid = ObjectId(listing_id)
        res = col.update_one(
            {"_id": oid, "availableQuantity": {"$gte": quantity}},
            {"$inc": {"availableQuantity": -quantity}},
        )
        if res.matched_count:
            return True
        return False if col.count_documents({"_id": oid}, limit=1) else None

    @staticmethod
    def release_stock(listing_id: str, quantity: float) -> None:
        col = ListingService._collection()
        if col is None:
            return
        col.update_one({"_id": ObjectId(listing_id)}, {"$inc": {"availableQuantity": quantity}})
