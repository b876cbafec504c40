# routecost/business_logic/entities/cost_calculation_entity.py
from dataclasses import dataclass, field
from typing import Optional, List
from decimal import Decimal
from datetime import date, datetime
from .base_entity import BaseEntity
from .cost_calculation_detail_entity import CostCalculationDetailEntity
from routecost.constants import CalculationStatus, RouteSource

@dataclass
class CostCalculationEntity(BaseEntity):
    calculation_no: str
    product_name: str
    product_category: str
    quantity: int
    material_cost: Decimal
    process_cost: Decimal
    overhead_cost: Decimal
    total_cost: Decimal
    unit_cost: Decimal
    selling_price: Decimal
    parameters_as_of: date
    calculated_by: str
    calculated_at: datetime
    material_type: Optional[str] = None
    size_range: Optional[str] = None
    inquiry_id: Optional[str] = None
    margin_percentage: Optional[Decimal] = None   # None: cost-only calculation
    currency: str = "USD"
    route_id: Optional[int] = None                # None for custom routes
    route_name: Optional[str] = None
    route_source: Optional[RouteSource] = None
    status: CalculationStatus = CalculationStatus.DRAFT
    submitted_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    previous_calculation_id: Optional[int] = None  # the rejected calculation this one re-issues
    version: int = 1

    details: List[CostCalculationDetailEntity] = field(default_factory=list, init=False, compare=False, repr=False)

    @property
    def is_editable(self) -> bool:
        return self.status == CalculationStatus.DRAFT
