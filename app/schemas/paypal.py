"""
Schemas for PayPal checkout.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class PayPalOrderCreate(BaseModel):
    """Raw checkout body from the PayPal button; validated in the route so errors stay 400s."""
    model_config = ConfigDict(extra="ignore")

    amount: Optional[Any] = None
    currency: Optional[Any] = None
    intent: Optional[Any] = None
    shop: Optional[Any] = None  # stored on the order as custom_id
