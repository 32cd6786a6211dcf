"""Payment schemas"""

from pydantic import BaseModel, Field
import uuid

from liveshop.schemas.base import BaseSchema

class PaymentCreateRequest(BaseModel):
    order_id: uuid.UUID

class PaymentCreateResponse(BaseSchema):
    order_id: uuid.UUID
    razorpay_order_id: str
    amount: int  # Minor units
    currency: str
    key: str

class PaymentVerifyRequest(BaseModel):
    order_id: uuid.UUID
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)
