"""Base schemas and response envelope helpers"""

from pydantic import BaseModel, ConfigDict, PlainSerializer
from typing import Annotated, Any, Dict, Optional
from decimal import Decimal

# Amounts travel as JSON numbers; Decimal is kept on the Python side
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

class BaseSchema(BaseModel):
    """Base schema with common configuration"""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

def success_response(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Wrap a payload in the success envelope"""
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    body.update(extra)
    return body
