from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List


class AksBexOwnerRow(BaseModel):
    owner: str
    total: float = 0.0
    starting_amount: float = 0.0
    orders_total: float = 0.0
    aks: float = 0.0
    bex: float = 0.0
    count: int = 0


class PostaOwnerRow(BaseModel):
    owner: str
    total: float = 0.0
    count: int = 0


class AksBexReport(BaseModel):
    by_owner: List[AksBexOwnerRow] = []
    total: float = 0.0
    total_aks: float = 0.0
    total_bex: float = 0.0
    total_starting: float = 0.0
    total_with_starting: float = 0.0


class PostaReport(BaseModel):
    by_owner: List[PostaOwnerRow] = []
    total: float = 0.0


class ObracunMeta(BaseModel):
    orders_count: int = 0
    total_legle: float = 0.0


class ObracunResponse(BaseModel):
    aks_bex: AksBexReport
    posta: PostaReport
    meta: ObracunMeta


class OwnerSuggestion(BaseModel):
    value: str
    count: int = 0


class AccountSuggestion(OwnerSuggestion):
    starting_amount: float = 0.0


class ShippingOwnersResponse(BaseModel):
    posta_names: List[OwnerSuggestion] = []
    aks_bex_accounts: List[AccountSuggestion] = []


class ShippingAccountUpsert(BaseModel):
    value: str = Field(..., max_length=255)
    # Validated by the ledger so bad values get the domain error envelope
    starting_amount: float
    scope: Optional[str] = None


class ShippingAccountOut(BaseModel):
    id: int
    value: str
    starting_amount: float

    model_config = ConfigDict(from_attributes=True)
