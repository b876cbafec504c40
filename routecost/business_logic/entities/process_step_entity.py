# routecost/business_logic/entities/process_step_entity.py
from dataclasses import dataclass, field
from typing import Optional
from decimal import Decimal
from .base_entity import BaseEntity

@dataclass
class ProcessStepEntity(BaseEntity):
    code: str
    name: str
    process_category_id: int                      # Foreign Key to ProcessCategoryEntity
    default_equipment_id: Optional[int] = None    # Foreign Key to EquipmentEntity
    name_en: Optional[str] = field(default=None)
    setup_time_minutes: Decimal = field(default_factory=lambda: Decimal("0"))   # once per batch
    cycle_time_seconds: Decimal = field(default_factory=lambda: Decimal("0"))   # per unit
    labor_required: int = 1                       # operators needed while the step runs
    description: Optional[str] = field(default=None)
    sort_order: int = 0
    is_active: bool = True
