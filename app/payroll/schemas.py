"""Pydantic schemas for the payroll proxy."""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any


class PayrollProxyRequest(BaseModel):
    """Proxy request; required fields are checked by the route."""
    model_config = {"populate_by_name": True}

    organization_id: Optional[str] = Field(default=None, alias="organizationId")
    action: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class PayrollProxyResponse(BaseModel):
    """Provider response passed through to the caller."""
    success: bool
    data: Any = None
