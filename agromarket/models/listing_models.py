# agromarket/models/listing_models.py

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

CATEGORIES = ("Vegetables", "Fruits", "Grains", "Dairy", "Poultry")

CropCategory = Literal["Vegetables", "Fruits", "Grains", "Dairy", "Poultry"]


class ListingCreate(BaseModel):
    cropName: str = Field(..., min_length=2)
    cropCategory: CropCategory
    availableQuantity: float = Field(..., gt=0)
    minPrice: float = Field(..., gt=0)
    description: str = Field(..., min_length=10)
    location: str = Field(..., min_length=2)
    harvestDate: date

    @field_validator("cropName", "description", "location", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("harvestDate")
    @classmethod
    def _not_in_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("Harvest date cannot be in the past.")
        return v


class Listing(BaseModel):
    id: str
    farmerId: str
    farmerName: str = ""
    cropName: str
    cropCategory: str
    availableQuantity: float
    minPrice: float
    description: str = ""
    location: str = ""
    harvestDate: Optional[str] = None
    createdAt: Optional[datetime] = None
    isSample: bool = False

    @classmethod
    def from_doc(cls, doc: dict) -> "Listing":
        data = {k: v for k, v in doc.items() if k in cls.model_fields}
        data["id"] = str(doc.get("_id") or doc.get("id"))
        return cls(**data)

    @property
    def total_value(self) -> float:
        return self.availableQuantity * self.minPrice

    @property
    def default_quantity(self) -> float:
        return min(10, self.availableQuantity)


@dataclass
class ListingFeed:
    listings: List[Listing] = field(default_factory=list)
    source: str = "store"
    degraded: bool = False
    notice: Optional[str] = None

    def to_dict(self):
        return {
            "listings": [l.model_dump(mode="json") for l in self.listings],
            "source": self.source,
            "degraded": self.degraded,
            "notice": self.notice,
        }
