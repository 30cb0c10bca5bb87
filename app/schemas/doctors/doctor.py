# app/schemas/doctor.py
from pydantic import BaseModel, Field
from typing import List, Optional

class DoctorResponse(BaseModel):
    id: int
    name: str
    specialty: str
    experience_years: int
    rating: float = Field(ge=0, le=5)
    location: str
    availability_text: str = ""
    fee_amount: Optional[float] = None
    gender: Optional[str] = None
    languages: List[str] = []
    clinic_name: Optional[str] = None
    available_days: List[str] = []
    image_ref: Optional[str] = None

class ResultPageResponse(BaseModel):
    items: List[DoctorResponse]
    total_matches: int
    page_number: int
    page_size: int
    total_pages: int
