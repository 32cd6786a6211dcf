"""
Address schema
Used by order creation on the server and by checkout validation on the client
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Any, Dict, Optional

# Field-level messages shown next to the input
ADDRESS_MESSAGES = {
    "full_name": "Full name is required",
    "phone": "Enter a valid 10-digit phone number",
    "address_line1": "Address line 1 is required",
    "address_line2": "Address line 2 is too long",
    "city": "City is required",
    "state": "State is required",
    "postal_code": "Enter a valid 6-digit postal code",
    "country": "Country is required",
}

class AddressInfo(BaseModel):
    """Schema for address information"""

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., pattern=r"^\d{10}$")
    address_line1: str = Field(..., min_length=1, max_length=500)
    address_line2: Optional[str] = Field(None, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., pattern=r"^\d{6}$")
    country: str = Field("India", min_length=1, max_length=100)

def address_errors(data: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate raw address fields

    Args:
        data: Field values as typed by the user

    Returns:
        Mapping of field name to message, empty when the address is valid
    """
    try:
        AddressInfo.model_validate(data)
    except ValidationError as e:
        errors: Dict[str, str] = {}
        for error in e.errors():
            field = str(error["loc"][0]) if error.get("loc") else "address"
            errors.setdefault(field, ADDRESS_MESSAGES.get(field, error["msg"]))
        return errors
    return {}
