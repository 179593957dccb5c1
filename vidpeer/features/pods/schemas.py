from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class PodCreateIn(BaseModel):
    url: str = Field(..., pattern=r"^https?://", examples=["http://pod2.example.org"])

class PodOut(BaseModel):
    id: int
    url: str
    created_at: datetime

    model_config = {"from_attributes": True}

class PodListOut(BaseModel):
    items: List[PodOut]
    total: int
