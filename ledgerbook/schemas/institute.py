from pydantic import BaseModel, Field
from typing import List
from datetime import datetime


class InstituteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class InstituteResponse(BaseModel):
    id: str
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


class InstituteListResponse(BaseModel):
    total: int
    institutes: List[InstituteResponse]
