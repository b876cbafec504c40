# routecost/business_logic/entities/process_category_entity.py
from dataclasses import dataclass, field
from typing import Optional
from .base_entity import BaseEntity

@dataclass
class ProcessCategoryEntity(BaseEntity):
    code: str                       # e.g. "FORM", "HEAT", "PLATE"
    name: str
    name_en: Optional[str] = field(default=None)
    description: Optional[str] = field(default=None)
    sort_order: int = 0
    is_active: bool = True
