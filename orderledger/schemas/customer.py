from pydantic import BaseModel, ConfigDict
from typing import List


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: str
    address: str = ""
    pickup: bool = False
    last_used_at: int

    model_config = ConfigDict(from_attributes=True)


class CustomerListResponse(BaseModel):
    items: List[CustomerOut]


class CustomerSyncResult(BaseModel):
    created: int = 0
