# routecost/business_logic/entities/product_spec.py
"""Request-side value objects. They are never persisted as-is."""
from dataclasses import dataclass, field
from typing import Optional, Tuple
from decimal import Decimal
from datetime import date


@dataclass(frozen=True)
class ProductSpec:
    name: str
    category: str
    material_type: Optional[str] = None
    size_range: Optional[str] = None
    inquiry_id: Optional[str] = None


@dataclass(frozen=True)
class CustomRouteLine:
    """One caller-supplied step; times only override the step defaults when positive."""
    process_step_id: int
    equipment_id: Optional[int] = None
    setup_time: Optional[Decimal] = None    # minutes
    cycle_time: Optional[Decimal] = None    # seconds per unit
    yield_rate: Optional[Decimal] = None
    other_cost: Optional[Decimal] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CalculationRequest:
    product_spec: ProductSpec
    quantity: int
    material_cost: Decimal
    requested_by: str
    route_id: Optional[int] = None
    custom_route: Tuple[CustomRouteLine, ...] = field(default_factory=tuple)
    margin_percent: Optional[Decimal] = None
    parameters_as_of: Optional[date] = None   # defaults to the calculation date
