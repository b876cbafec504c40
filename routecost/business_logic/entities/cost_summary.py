# routecost/business_logic/entities/cost_summary.py
from dataclasses import dataclass, field
from typing import Optional, List
from decimal import Decimal


@dataclass(frozen=True)
class ProcessCostBreakdown:
    sequence: int
    process_name: Optional[str]
    equipment_name: Optional[str]
    total_time_hours: Decimal
    labor_cost: Decimal
    equipment_cost: Decimal
    electricity_cost: Decimal
    yield_loss_cost: Decimal
    total_cost: Decimal   # the step subtotal, yield loss included


@dataclass(frozen=True)
class CostSummary:
    calculation_no: str
    material_cost: Decimal
    process_cost: Decimal
    overhead_cost: Decimal
    total_cost: Decimal
    unit_cost: Decimal
    suggested_price: Decimal
    margin_percentage: Optional[Decimal]
    process_breakdown: List[ProcessCostBreakdown] = field(default_factory=list)
