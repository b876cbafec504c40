# routecost/business_logic/entities/cost_calculation_detail_entity.py
from dataclasses import dataclass, field
from typing import Optional
from decimal import Decimal
from .base_entity import BaseEntity

@dataclass
class CostCalculationDetailEntity(BaseEntity):
    sequence: int
    process_step_id: int
    calculation_id: Optional[int] = None
    process_step_name: Optional[str] = None
    equipment_id: Optional[int] = None
    equipment_name: Optional[str] = None
    setup_time: Decimal = field(default_factory=lambda: Decimal("0"))         # minutes
    cycle_time: Decimal = field(default_factory=lambda: Decimal("0"))         # seconds per unit
    total_time_hours: Decimal = field(default_factory=lambda: Decimal("0"))
    yield_rate: Decimal = field(default_factory=lambda: Decimal("1"))        # this step's surviving fraction
    labor_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    equipment_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    electricity_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    other_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    yield_loss_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    subtotal_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    notes: Optional[str] = None

    def cost_fields(self) -> tuple:
        """Everything the calculation produced for this step, without storage identity."""
        return (
            self.sequence, self.process_step_id, self.equipment_id,
            self.setup_time, self.cycle_time, self.total_time_hours, self.yield_rate,
            self.labor_cost, self.equipment_cost, self.electricity_cost,
            self.other_cost, self.yield_loss_cost, self.subtotal_cost, self.notes,
        )
