from pydantic import BaseModel, ConfigDict
from typing import Optional, List


class ProductVariantOut(BaseModel):
    id: str
    label: str
    nabavna_cena: float
    prodajna_cena: float
    is_default: bool = False

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: int
    name: str
    kp_name: Optional[str] = None
    nabavna_cena: float
    prodajna_cena: float
    variants: List[ProductVariantOut] = []

    model_config = ConfigDict(from_attributes=True)
