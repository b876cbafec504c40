from __future__ import annotations

import itertools
import threading
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from routecost.app import create_engine
from routecost.business_logic.entities import CalculationRequest, ProductSpec

FIXED_NOW = datetime(2024, 3, 15, 9, 30, 0)
RATES_FROM = date(2024, 1, 1)


class SteppingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = FIXED_NOW):
        self._start = start
        self._ticks = itertools.count()
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._start + timedelta(seconds=next(self._ticks))


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def engine(tmp_path, clock):
    return create_engine(str(tmp_path / "costing.db"), clock=clock)


@pytest.fixture
def catalog(engine):
    """A small fastener shop: forming, heat treatment, inspection."""
    cm = engine.catalog_manager
    forming = cm.create_category("FORM", "Forming")
    heat = cm.create_category("HEAT", "Heat treatment")
    finishing = cm.create_category("FIN", "Finishing")

    # 300000 over 10 years + 10000/yr maintenance -> 20.00 per hour
    header = cm.create_equipment("HDR-01", "Cold header", forming.id, purchase_cost="300000",
                                 depreciation_years=10, maintenance_cost_per_year="10000",
                                 power_consumption="5")
    furnace = cm.create_equipment("FUR-01", "Mesh-belt furnace", heat.id, purchase_cost="500000",
                                  depreciation_years=10, maintenance_cost_per_year="20000",
                                  power_consumption="60")

    cold_forming = cm.create_process_step("CF", "Cold forming", forming.id, setup_time_minutes="30",
                                          cycle_time_seconds="10", labor_required=1,
                                          default_equipment_id=header.id)
    heat_treat = cm.create_process_step("HT", "Quench and temper", heat.id, setup_time_minutes="60",
                                        cycle_time_seconds="2", labor_required=1,
                                        default_equipment_id=furnace.id)
    inspection = cm.create_process_step("QC", "Final inspection", finishing.id, setup_time_minutes="0",
                                        cycle_time_seconds="1", labor_required=2)

    bolt_default = cm.create_route("bolt", "Bolt - cold formed",
                                   [{"sequence": 1, "process_step_id": cold_forming.id, "yield_rate": "0.98"}],
                                   is_default=True)
    bolt_heat_treated = cm.create_route("bolt", "Bolt - heat treated", [
        {"sequence": 10, "process_step_id": cold_forming.id, "yield_rate": "0.98"},
        {"sequence": 20, "process_step_id": heat_treat.id, "yield_rate": "0.99"},
        {"sequence": 30, "process_step_id": inspection.id, "other_cost": "5"},
    ], material_type="alloy_steel", size_range="M10")
    screw_generic = cm.create_route("screw", "Screw - generic",
                                    [{"sequence": 1, "process_step_id": cold_forming.id}])
    screw_m6 = cm.create_route("screw", "Screw - carbon M6",
                               [{"sequence": 1, "process_step_id": cold_forming.id, "yield_rate": "0.995"}],
                               material_type="carbon_steel", size_range="M6")

    return SimpleNamespace(
        forming=forming, heat=heat, finishing=finishing,
        header=header, furnace=furnace,
        cold_forming=cold_forming, heat_treat=heat_treat, inspection=inspection,
        bolt_default=bolt_default, bolt_heat_treated=bolt_heat_treated,
        screw_generic=screw_generic, screw_m6=screw_m6,
    )


@pytest.fixture
def rates(engine):
    pm = engine.cost_parameter_manager
    return SimpleNamespace(
        labor=pm.add_parameter("labor", "15", RATES_FROM, parameter_name="Direct labor", unit="USD/h"),
        electricity=pm.add_parameter("electricity", "0.12", RATES_FROM, parameter_name="Grid power", unit="USD/kWh"),
        overhead=pm.add_parameter("overhead", "0.10", RATES_FROM, parameter_name="Plant overhead"),
    )


@pytest.fixture
def make_request():
    def _make(**overrides) -> CalculationRequest:
        values = dict(
            product_spec=ProductSpec(name="Hex bolt M10x50", category="bolt",
                                     material_type="carbon_steel", size_range="M10",
                                     inquiry_id="INQ-100"),
            quantity=1000,
            material_cost=Decimal("500"),
            requested_by="alice",
            margin_percent=Decimal("20"),
        )
        values.update(overrides)
        return CalculationRequest(**values)
    return _make


@pytest.fixture
def priced(engine, catalog, rates):
    """Catalog and rates are both seeded."""
    return engine
