from pydantic import BaseModel, Field
from typing import Literal

OrderStatus = Literal["NEW", "CONFIRMED", "OUT_FOR_DELIVERY", "DELIVERED", "CANCELED"]


class OrderStatusUpdateRequest(BaseModel):
    id: int = Field(..., ge=1)
    status: OrderStatus


class DriverStatusRequest(BaseModel):
    status: Literal["OUT_FOR_DELIVERY", "DELIVERED", "CANCELED"]
