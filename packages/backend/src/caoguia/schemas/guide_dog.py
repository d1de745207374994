"""Pydantic schemas for guide dogs."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from caoguia.schemas.documents import digits_only

DogSex = Literal["macho", "femea"]


class GuideDogCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    sex: DogSex
    color: str = Field(..., min_length=1, max_length=50)
    breed: str = Field(..., min_length=1, max_length=100)
    birth_date: date
    registration_number: str = Field(..., min_length=1, max_length=50)
    institution_cnpj: Optional[str] = Field(
        None, description="Training institution (PCD owners only)"
    )

    @field_validator("institution_cnpj")
    @classmethod
    def _cnpj_digits(cls, v: Optional[str]) -> Optional[str]:
        return digits_only(v) if v else None


class GuideDogUpdate(BaseModel):
    """Partial edit. Ownership links are not editable."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    sex: Optional[DogSex] = None
    color: Optional[str] = Field(None, min_length=1, max_length=50)
    breed: Optional[str] = Field(None, min_length=1, max_length=100)
    birth_date: Optional[date] = None
    registration_number: Optional[str] = Field(None, min_length=1, max_length=50)


class GuideDogRead(BaseModel):
    id: int
    name: str
    sex: str
    color: str
    breed: str
    birth_date: date
    registration_number: str
    user_id: Optional[int] = None
    institution_id: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
