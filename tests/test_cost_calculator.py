from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

import pytest

from routecost.business_logic.cost_calculator import CostCalculator, equipment_hourly_cost
from routecost.business_logic.entities import (
    CostRateSnapshot, EquipmentEntity, ProcessRouteDetailEntity, ProcessStepEntity,
    ProductProcessRouteEntity, ProductSpec,
)
from routecost.exceptions import (
    InactiveRouteReference, InvalidQuantity, InvalidRouteDefinition, ValidationError,
)

D = Decimal
SPEC = ProductSpec(name="Hex bolt M10x50", category="bolt")
RATES = CostRateSnapshot(as_of=date(2024, 3, 15), labor_rate=D("15"), electricity_rate=D("0.12"),
                         overhead_rate=D("0.10"))


def make_equipment(equipment_id=1, **kw):
    values = dict(code=f"EQ-{equipment_id}", name=f"Machine {equipment_id}", process_category_id=1,
                  purchase_cost=D("300000"), depreciation_years=10,
                  maintenance_cost_per_year=D("10000"), power_consumption=D("5"))
    values.update(kw)
    return EquipmentEntity(id=equipment_id, **values)


def make_step(step_id=1, **kw):
    values = dict(code=f"ST-{step_id}", name=f"Step {step_id}", process_category_id=1,
                  setup_time_minutes=D("30"), cycle_time_seconds=D("10"), labor_required=1)
    values.update(kw)
    return ProcessStepEntity(id=step_id, **values)


def make_detail(sequence, step, equipment=None, **kw):
    detail = ProcessRouteDetailEntity(sequence=sequence, process_step_id=step.id,
                                      equipment_id=equipment.id if equipment else None, **kw)
    detail.process_step = step
    detail.equipment = equipment
    return detail


def make_route(*details, is_active=True):
    route = ProductProcessRouteEntity(id=1, product_category="bolt", route_name="Test route", is_active=is_active)
    route.details = list(details)
    return route


@pytest.fixture
def calculator():
    return CostCalculator()


@pytest.fixture
def worked_route():
    return make_route(make_detail(1, make_step(), make_equipment(), yield_rate=D("0.98")))


def test_equipment_hourly_cost_is_depreciation_plus_maintenance():
    assert equipment_hourly_cost(make_equipment()) == D("20")


def test_worked_example(calculator, worked_route):
    result = calculator.calculate(SPEC, 1000, D("500"), worked_route, RATES, margin_percent=D("20"))

    (step,) = result.details
    assert step.total_time_hours == D("3.2778")
    assert step.labor_cost == D("49.17")
    assert step.equipment_cost == D("65.56")
    assert step.electricity_cost == D("1.97")
    assert step.yield_loss_cost == D("10.00")
    assert step.subtotal_cost == D("126.70")
    assert result.process_cost == D("126.70")
    assert result.overhead_cost == D("62.67")
    assert result.total_cost == D("689.37")
    assert result.unit_cost == D("0.68937")
    assert result.selling_price == D("861.71")


def test_single_step_without_yield_loss_totals_exactly(calculator):
    # 360 units x 10 s = exactly one hour, no setup
    route = make_route(make_detail(1, make_step(setup_time_minutes=D("0")), make_equipment()))
    result = calculator.calculate(SPEC, 360, D("100"), route, RATES)

    (step,) = result.details
    assert (step.labor_cost, step.equipment_cost, step.electricity_cost) == (D("15.00"), D("20.00"), D("0.60"))
    assert step.subtotal_cost == D("35.60")
    assert result.overhead_cost == D("13.56")
    assert result.total_cost == D("149.16")
    assert result.selling_price == result.total_cost
    assert result.margin_percentage is None


def test_full_yield_means_no_yield_loss_on_any_step(calculator):
    route = make_route(
        make_detail(1, make_step(1), make_equipment(1)),
        make_detail(2, make_step(2), make_equipment(2)),
        make_detail(3, make_step(3)),
    )
    result = calculator.calculate(SPEC, 5000, D("1200"), route, RATES)
    assert [d.yield_loss_cost for d in result.details] == [D("0.00")] * 3


def test_scrap_is_charged_at_cost_to_date(calculator):
    first = make_detail(1, make_step(1), make_equipment(1))
    second = make_detail(2, make_step(2, setup_time_minutes=D("0"), cycle_time_seconds=D("0")), yield_rate=D("0.9"))
    result = calculator.calculate(SPEC, 1000, D("500"), make_route(first, second), RATES)

    step_one, step_two = result.details
    # 100 scrapped units carry material plus everything step one spent on them
    expected = ((D("500") + step_one.subtotal_cost) * D("0.1")).quantize(D("0.01"), rounding=ROUND_HALF_UP)
    assert step_two.yield_loss_cost == expected


def test_yield_compounds_across_steps(calculator):
    route = make_route(
        make_detail(1, make_step(1, setup_time_minutes=D("0"), cycle_time_seconds=D("0")), yield_rate=D("0.5")),
        make_detail(2, make_step(2, setup_time_minutes=D("0"), cycle_time_seconds=D("0")), yield_rate=D("0.5")),
    )
    result = calculator.calculate(SPEC, 100, D("100"), route, RATES)
    # 50 units lost at step one (1.00 each), 25 more at step two (1.00 + 50.00/100 each)
    assert [d.yield_loss_cost for d in result.details] == [D("50.00"), D("37.50")]


def test_steps_run_in_sequence_order_not_list_order(calculator):
    late = make_detail(20, make_step(2, name="Late"))
    early = make_detail(10, make_step(1, name="Early"))
    result = calculator.calculate(SPEC, 10, D("10"), make_route(late, early), RATES)
    assert [d.process_step_name for d in result.details] == ["Early", "Late"]


def test_overrides_replace_step_defaults(calculator):
    detail = make_detail(1, make_step(), make_equipment(),
                         setup_time_override=D("0"), cycle_time_override=D("36"))
    result = calculator.calculate(SPEC, 100, D("0"), make_route(detail), RATES)
    (step,) = result.details
    assert (step.setup_time, step.cycle_time, step.total_time_hours) == (D("0.00"), D("36.00"), D("1.0000"))


def test_step_without_equipment_has_no_machine_or_power_cost(calculator):
    result = calculator.calculate(SPEC, 1000, D("500"), make_route(make_detail(1, make_step())), RATES)
    (step,) = result.details
    assert step.equipment_id is None
    assert step.equipment_cost == D("0.00")
    assert step.electricity_cost == D("0.00")
    assert step.labor_cost == D("49.17")


def test_other_cost_is_part_of_subtotal(calculator):
    detail = make_detail(1, make_step(setup_time_minutes=D("0"), cycle_time_seconds=D("0")), other_cost=D("12.5"))
    (step,) = calculator.calculate(SPEC, 10, D("0"), make_route(detail), RATES).details
    assert step.subtotal_cost == D("12.50")


def test_calculation_is_idempotent(calculator, worked_route):
    first = calculator.calculate(SPEC, 1000, D("500"), worked_route, RATES, margin_percent=20)
    second = calculator.calculate(SPEC, 1000, D("500"), worked_route, RATES, margin_percent=20)
    assert [d.cost_fields() for d in first.details] == [d.cost_fields() for d in second.details]
    assert first.total_cost == second.total_cost


@pytest.mark.parametrize("quantity", [1, 7, 333, 1000, 99_991, 1_000_000, 10_000_000, 123_456_789, 9_999_999_999])
def test_unit_cost_times_quantity_matches_total(calculator, worked_route, quantity):
    result = calculator.calculate(SPEC, quantity, D("1234.56"), worked_route, RATES)
    assert abs(result.unit_cost * quantity - result.total_cost) <= D("0.01")


def test_unit_cost_stays_within_a_cent_for_ten_million_unit_batches(calculator):
    # Material only: total is exactly 1100.00, so total/quantity rarely terminates
    route = make_route(make_detail(1, make_step(setup_time_minutes=D("0"), cycle_time_seconds=D("0"))))
    for quantity in range(9_999_000, 10_000_001, 37):
        result = calculator.calculate(SPEC, quantity, D("1000"), route, RATES)
        assert result.total_cost == D("1100.00")
        assert abs(result.unit_cost * quantity - result.total_cost) <= D("0.01")


def test_unit_cost_keeps_digits_beyond_the_default_quantum(calculator):
    # 1100.00 / 16_000_000 = 0.00006875; quantum is 1e-10 for an eight-digit batch
    route = make_route(make_detail(1, make_step(setup_time_minutes=D("0"), cycle_time_seconds=D("0"))))
    result = calculator.calculate(SPEC, 16_000_000, D("1000"), route, RATES)
    assert result.unit_cost == D("0.0000687500")
    assert result.unit_cost * 16_000_000 == result.total_cost


@pytest.mark.parametrize("quantity", [0, -5, 2.5, True, "10", None])
def test_invalid_quantity_is_rejected(calculator, worked_route, quantity):
    with pytest.raises(InvalidQuantity):
        calculator.calculate(SPEC, quantity, D("500"), worked_route, RATES)


@pytest.mark.parametrize("margin", [D("-1"), D("100"), D("150")])
def test_margin_outside_range_is_rejected(calculator, worked_route, margin):
    with pytest.raises(ValidationError):
        calculator.calculate(SPEC, 1000, D("500"), worked_route, RATES, margin_percent=margin)


def test_zero_margin_sells_at_cost(calculator, worked_route):
    result = calculator.calculate(SPEC, 1000, D("500"), worked_route, RATES, margin_percent=D("0"))
    assert result.selling_price == result.total_cost


def test_negative_material_cost_is_rejected(calculator, worked_route):
    with pytest.raises(ValidationError):
        calculator.calculate(SPEC, 1000, D("-1"), worked_route, RATES)


def test_inactive_step_is_fatal(calculator):
    route = make_route(make_detail(1, make_step(is_active=False), make_equipment()))
    with pytest.raises(InactiveRouteReference) as excinfo:
        calculator.calculate(SPEC, 10, D("1"), route, RATES)
    assert excinfo.value.record_type == "process step"


def test_inactive_equipment_is_fatal(calculator):
    route = make_route(make_detail(1, make_step(), make_equipment(is_active=False)))
    with pytest.raises(InactiveRouteReference) as excinfo:
        calculator.calculate(SPEC, 10, D("1"), route, RATES)
    assert excinfo.value.record_type == "equipment"


def test_inactive_or_empty_route_is_rejected(calculator):
    with pytest.raises(ValidationError):
        calculator.calculate(SPEC, 10, D("1"), make_route(make_detail(1, make_step()), is_active=False), RATES)
    with pytest.raises(ValidationError):
        calculator.calculate(SPEC, 10, D("1"), make_route(), RATES)


@pytest.mark.parametrize("yield_rate", [D("0"), D("-0.1"), D("1.01")])
def test_yield_outside_unit_interval_is_a_route_error(calculator, yield_rate):
    route = make_route(make_detail(1, make_step(), yield_rate=yield_rate))
    with pytest.raises(InvalidRouteDefinition):
        calculator.calculate(SPEC, 10, D("1"), route, RATES)


def test_duplicate_sequence_is_a_route_error(calculator):
    route = make_route(make_detail(1, make_step(1)), make_detail(1, make_step(2)))
    with pytest.raises(InvalidRouteDefinition):
        calculator.calculate(SPEC, 10, D("1"), route, RATES)
