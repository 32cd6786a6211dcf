"""
Razorpay payment gateway integration
"""

import razorpay
from razorpay.errors import BadRequestError, GatewayError, ServerError
import hmac
import hashlib
from typing import Dict, Any, Optional

from liveshop.core.config import settings
from liveshop.core.exceptions import InvalidPaymentException

class RazorpayClient:
    """Razorpay API client wrapper"""

    def __init__(self, key_id: Optional[str] = None, key_secret: Optional[str] = None):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.client = razorpay.Client(auth=(self.key_id, self.key_secret))

    def create_order(
        self,
        amount: int,
        currency: str = "INR",
        receipt: Optional[str] = None,
        notes: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Create Razorpay order

        Args:
            amount: Amount in smallest currency unit (paise for INR)
            currency: Currency code
            receipt: Receipt number
            notes: Additional notes

        Returns:
            Razorpay order details
        """
        try:
            return self.client.order.create(data={
                "amount": amount,
                "currency": currency,
                "receipt": receipt or "",
                "notes": notes or {}
            })
        except BadRequestError as e:
            raise InvalidPaymentException(f"Failed to create payment order: {str(e)}")
        except (GatewayError, ServerError) as e:
            raise InvalidPaymentException(f"Payment gateway unavailable: {str(e)}")

    def verify_payment_signature(
        self,
        order_id: str,
        payment_id: str,
        signature: str
    ) -> bool:
        """
        Verify payment signature

        Args:
            order_id: Razorpay order ID
            payment_id: Razorpay payment ID
            signature: Payment signature

        Returns:
            True if signature is valid
        """
        expected_signature = hmac.new(
            self.key_secret.encode("utf-8"),
            f"{order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256
        ).hexdigest()

        return hmac.compare_digest(expected_signature, signature)

def get_payment_gateway() -> RazorpayClient:
    """Dependency providing the configured gateway client"""
    return RazorpayClient()
