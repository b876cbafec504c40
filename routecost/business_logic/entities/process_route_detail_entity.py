# routecost/business_logic/entities/process_route_detail_entity.py
from dataclasses import dataclass, field
from typing import Optional
from decimal import Decimal
from .base_entity import BaseEntity
from .process_step_entity import ProcessStepEntity
from .equipment_entity import EquipmentEntity

@dataclass
class ProcessRouteDetailEntity(BaseEntity):
    sequence: int                                  # execution order, unique within a route
    process_step_id: int
    route_id: Optional[int] = None
    equipment_id: Optional[int] = None             # overrides the step's default equipment
    setup_time_override: Optional[Decimal] = None  # minutes
    cycle_time_override: Optional[Decimal] = None  # seconds per unit
    yield_rate: Decimal = field(default_factory=lambda: Decimal("1"))  # surviving fraction, (0, 1]
    other_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    notes: Optional[str] = None

    # Loaded by CatalogManager, not columns
    process_step: Optional[ProcessStepEntity] = field(default=None, init=False, compare=False, repr=False)
    equipment: Optional[EquipmentEntity] = field(default=None, init=False, compare=False, repr=False)
