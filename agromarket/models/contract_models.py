# agromarket/models/contract_models.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

ContractStatus = Literal["pending", "active", "completed", "cancelled"]
PaymentStatus = Literal["pending", "completed"]

# dashboard bucket order
STATUSES = ("active", "pending", "completed", "cancelled")


class ProposalRequest(BaseModel):
    quantity: float = Field(..., gt=0)
    price: float = Field(..., gt=0)


class Contract(BaseModel):
    id: str
    listingId: Optional[str] = None
    cropName: str
    farmerId: str
    farmerName: str = ""
    buyerId: str
    buyerName: str = ""
    quantity: float
    price: float
    status: ContractStatus = "pending"
    paymentStatus: Optional[PaymentStatus] = None
    createdAt: Optional[datetime] = None
    deliveryDate: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    deliveredDate: Optional[datetime] = None
    paymentDate: Optional[datetime] = None
    cancelledBy: Optional[Literal["farmer", "buyer"]] = None
    cancellationReason: Optional[str] = None
    version: int = 0

    @classmethod
    def from_doc(cls, doc: dict) -> "Contract":
        data = {k: v for k, v in doc.items() if k in cls.model_fields}
        data["id"] = str(doc.get("_id") or doc.get("id"))
        return cls(**data)

    @property
    def total_value(self) -> float:
        return self.quantity * self.price

    @property
    def is_paid(self) -> bool:
        return self.paymentStatus == "completed"
