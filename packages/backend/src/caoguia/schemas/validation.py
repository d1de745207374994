"""Pydantic schemas for the admin approval workflow."""

from typing import Optional

from pydantic import BaseModel, Field

from caoguia.auth.principals import ApprovalStatus


class ApprovalUpdate(BaseModel):
    status: ApprovalStatus
    rejection_reason: Optional[str] = Field(None, max_length=1000)


class ApprovalRead(BaseModel):
    id: int
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None

    model_config = {"from_attributes": True}
