"""
Credits data models.

Defines CreditPackage, CreditTransaction and UserProfile.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

Plan = Literal["free", "pro", "unlimited"]
TransactionType = Literal["purchase", "usage", "refund", "bonus"]


class CreditPackage(BaseModel):
    """Purchasable bundle of generation credits."""

    id: str
    name: str
    description: str
    price: int = Field(description="Price in cents")
    credits: int
    popular: bool = False


class CreditTransaction(BaseModel):
    """Ledger entry for a credit balance change."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user_id: str
    amount: int
    type: TransactionType
    description: str
    balance_after: int
    created_at: Optional[datetime] = None


class UserProfile(BaseModel):
    """Credit-bearing profile keyed by identity."""

    model_config = ConfigDict(extra="ignore")

    id: str
    credits: int = 0
    plan: Plan = "free"
    images_created: int = 0
    is_anonymous: bool = False

    @property
    def is_metered(self) -> bool:
        return self.plan == "free"
