# routecost/business_logic/entities/cost_rate_snapshot.py
from dataclasses import dataclass
from typing import Optional
from decimal import Decimal
from datetime import date


@dataclass(frozen=True)
class CostRateSnapshot:
    """The rates in force on one date, read together so a calculation never mixes two states."""
    as_of: date
    labor_rate: Decimal          # per labor hour
    electricity_rate: Decimal    # per kWh
    overhead_rate: Decimal       # fraction, 0.10 == 10%
    land_rate: Optional[Decimal] = None
