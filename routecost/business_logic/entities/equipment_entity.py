# routecost/business_logic/entities/equipment_entity.py
from dataclasses import dataclass, field
from typing import Optional
from decimal import Decimal
from .base_entity import BaseEntity

@dataclass
class EquipmentEntity(BaseEntity):
    code: str
    name: str
    process_category_id: int        # Foreign Key to ProcessCategoryEntity
    name_en: Optional[str] = field(default=None)
    specs: Optional[str] = field(default=None)
    capacity_per_hour: Decimal = field(default_factory=lambda: Decimal("0"))
    power_consumption: Decimal = field(default_factory=lambda: Decimal("0"))  # kW
    depreciation_years: int = 10
    purchase_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    maintenance_cost_per_year: Decimal = field(default_factory=lambda: Decimal("0"))
    location: Optional[str] = field(default=None)
    is_active: bool = True
