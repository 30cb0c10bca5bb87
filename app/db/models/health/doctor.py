# app/models/doctor.py
from typing import Iterable, List, Optional
from sqlmodel import SQLModel, Field

# List columns are stored as ",a,b," so a single value can be matched with
# LIKE '%,a,%' without hitting prefixes of other values.
LIST_DELIMITER = ","


def encode_list(values: Optional[Iterable[str]]) -> str:
    items = [v.strip() for v in (values or []) if v and v.strip()]
    if not items:
        return ""
    return LIST_DELIMITER + LIST_DELIMITER.join(items) + LIST_DELIMITER


def decode_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item for item in value.split(LIST_DELIMITER) if item]


def list_token(value: str) -> str:
    return f"{LIST_DELIMITER}{value}{LIST_DELIMITER}"


class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    specialty: str = Field(index=True)
    experience: int = Field(default=0)
    rating: float = Field(default=0.0)
    location: str = Field(index=True)
    availability: str = Field(default="")
    fee: Optional[int] = None
    gender: Optional[str] = None
    languages: str = Field(default="")
    clinic_name: Optional[str] = None
    available_days: str = Field(default="")
    profile_image: Optional[str] = None
