# agromarket/services/contract_service.py

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from bson import ObjectId
from flask import current_app
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from agromarket.errors import field_errors
from agromarket.models.contract_models import Contract, ProposalRequest
from agromarket.mongo_safe import get_col
from agromarket.services.contract_lifecycle import (
    ContractConflict,
    TransitionError,
    is_party,
    plan_transition,
    success_message,
)
from agromarket.services.listing_service import ListingService

CONFLICT_MESSAGE = "This contract was changed by someone else. The latest version has been reloaded."
STORE_DOWN = "The contract store is unavailable. Please try again later."


class ContractService:

    @staticmethod
    def _collection():
        return get_col("contracts")

    # =========================
    # CREATE: buyer proposal
    # =========================
    @staticmethod
    def propose_contract(market_session, listing_id: str, payload: dict):
        """
        Create a pending contract from a listing.
        Quantity is checked against the listing but stock is not reserved
        until the farmer accepts.
        """
        if not market_session.is_buyer:
            return {"error": "Only buyers can propose contracts", "code": 403}

        listing, err = ListingService.get_listing(listing_id)
        if err:
            return {"error": err, "code": 404 if err == "Listing not found" else 400}
        if listing.isSample:
            return {"error": "Sample listings cannot receive proposals.", "code": 400}

        try:
            req = ProposalRequest(**(payload or {}))
        except ValidationError as e:
            return {"error": "Enter a valid quantity and price.", "fields": field_errors(e), "code": 400}

        if req.quantity > listing.availableQuantity:
            return {
                "error": f"Only {listing.availableQuantity:g} kg of {listing.cropName} is available.",
                "code": 400,
            }

        col = ContractService._collection()
        if col is None:
            return {"error": STORE_DOWN, "code": 503}

        now = datetime.now(timezone.utc)
        days = current_app.config.get("PROPOSAL_DELIVERY_DAYS", 30)
        doc = {
            "listingId": listing.id,
            "farmerId": listing.farmerId,
            "farmerName": listing.farmerName,
            "buyerId": market_session.user_id,
            "buyerName": market_session.full_name,
            "cropName": listing.cropName,
            "quantity": req.quantity,
            "price": req.price,
            "status": "pending",
            "paymentStatus": "pending",
            "createdAt": now,
            "deliveryDate": now + timedelta(days=days),
            "version": 0,
        }

        try:
            inserted = col.insert_one(doc)
        except PyMongoError as e:
            current_app.logger.error("Error creating contract: %s", e)
            return {"error": "Failed to submit proposal. Please try again.", "code": 503}

        contract = Contract.from_doc({**doc, "_id": inserted.inserted_id})
        current_app.logger.info(
            "Contract %s proposed by %s on listing %s", contract.id, market_session.user_id, listing.id
        )
        return {"ok": True, "contract": contract}

    # =========================
    # READ
    # =========================
    @staticmethod
    def list_for(market_session) -> Tuple[List[Contract], bool]:
        """
        Contracts where the caller is the farmer (or buyer), newest first.
        Returns (contracts, degraded).
        """
        col = ContractService._collection()
        if col is None:
            return [], True

        key = "farmerId" if market_session.is_farmer else "buyerId"
        try:
            docs = list(col.find({key: market_session.user_id}).sort("createdAt", -1))
        except PyMongoError as e:
            current_app.logger.error("Error fetching contracts: %s", e)
            return [], True

        contracts = []
        for d in docs:
            try:
                contracts.append(Contract.from_doc(d))
            except ValidationError as e:
                current_app.logger.warning("Skipping malformed contract %s: %s", d.get("_id"), e)
        return contracts, False

    # =========================
    # UPDATE: status lifecycle
    # =========================
    @staticmethod
    def transition(market_session, contract_id: str, action: str, expected_version: Optional[int] = None):
        """
        Apply ``action`` as a conditional single-document update.

        The write only lands if the contract still has the status and
        version it was read with; otherwise the fresh document is returned
        with a conflict error.
        """
        if not ObjectId.is_valid(contract_id):
            return {"error": "Invalid contract id", "code": 404}

        col = ContractService._collection()
        if col is None:
            return {"error": STORE_DOWN, "code": 503}

        oid = ObjectId(contract_id)
        try:
            doc = col.find_one({"_id": oid})
            if not doc:
                return {"error": "Contract not found", "code": 404}

            contract = Contract.from_doc(doc)
            if not is_party(contract, market_session.user_id, market_session.role):
                return {"error": "You are not a party to this contract", "code": 403}

            if expected_version is not None and expected_version != contract.version:
                raise ContractConflict(CONFLICT_MESSAGE, contract)

            now = datetime.now(timezone.utc)
            patch = plan_transition(contract, market_session.user_id, market_session.role, action, now)

            reserved = None
            if action == "accept":
                reserved = ListingService.reserve_stock(contract.listingId, contract.quantity)
                if reserved is False:
                    return {
                        "error": "Not enough stock left on the listing to accept this contract.",
                        "contract": contract,
                        "code": 409,
                    }
                if reserved is None:
                    current_app.logger.warning(
                        "Listing %s not in store; accepting contract %s without stock check",
                        contract.listingId, contract.id,
                    )

            guard = {"_id": oid, "status": contract.status}
            guard["version"] = contract.version if "version" in doc else {"$exists": False}
            try:
                updated = col.find_one_and_update(
                    guard,
                    {"$set": patch, "$inc": {"version": 1}},
                    return_document=ReturnDocument.AFTER,
                )
            except PyMongoError:
                # the contract write did not land; give the stock back
                if reserved:
                    ListingService.release_stock(contract.listingId, contract.quantity)
                raise

            if updated is None:
                if reserved:
                    ListingService.release_stock(contract.listingId, contract.quantity)
                fresh = col.find_one({"_id": oid})
                raise ContractConflict(CONFLICT_MESSAGE, Contract.from_doc(fresh) if fresh else None)

        except TransitionError as e:
            return {"error": str(e), "code": 400}
        except ValidationError as e:
            current_app.logger.warning("Malformed contract %s: %s", contract_id, e)
            return {"error": "This contract record is malformed and cannot be updated.", "code": 422}
        except ContractConflict as e:
            current_app.logger.info("Conflict on contract %s (%s by %s)", contract_id, action, market_session.user_id)
            return {"error": str(e), "contract": e.current, "code": 409}
        except PyMongoError as e:
            current_app.logger.error("Error applying %s to contract %s: %s", action, contract_id, e)
            return {"error": f"Failed to {action} the contract. Please try again.", "code": 503}

        current_app.logger.info("Contract %s: %s by %s", contract_id, action, market_session.user_id)
        return {"ok": True, "contract": Contract.from_doc(updated), "message": success_message(action)}
