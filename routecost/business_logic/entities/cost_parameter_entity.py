# routecost/business_logic/entities/cost_parameter_entity.py
from dataclasses import dataclass, field
from typing import Optional
from decimal import Decimal
from datetime import date
from .base_entity import BaseEntity
from routecost.constants import CostParameterType

@dataclass
class CostParameterEntity(BaseEntity):
    parameter_type: CostParameterType
    parameter_name: str
    value: Decimal
    effective_date: date
    end_date: Optional[date] = None   # exclusive; None means open-ended
    unit: Optional[str] = field(default=None)
    description: Optional[str] = field(default=None)

    def is_effective_on(self, as_of: date) -> bool:
        return self.effective_date <= as_of and (self.end_date is None or as_of < self.end_date)

    def overlaps(self, effective_date: date, end_date: Optional[date]) -> bool:
        starts_before_other_ends = end_date is None or self.effective_date < end_date
        other_starts_before_this_ends = self.end_date is None or effective_date < self.end_date
        return starts_before_other_ends and other_starts_before_this_ends
