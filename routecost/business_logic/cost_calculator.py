# routecost/business_logic/cost_calculator.py
"""
Pure costing of one route for one batch.

No database access happens here: the caller hands in a route whose details already
carry their process step and equipment, plus the rates for a single as-of date.
Same inputs, same output, down to the last detail row.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Any
from decimal import Decimal

from routecost.business_logic.entities.process_route_entity import ProductProcessRouteEntity
from routecost.business_logic.entities.process_route_detail_entity import ProcessRouteDetailEntity
from routecost.business_logic.entities.equipment_entity import EquipmentEntity
from routecost.business_logic.entities.cost_calculation_detail_entity import CostCalculationDetailEntity
from routecost.business_logic.entities.cost_rate_snapshot import CostRateSnapshot
from routecost.business_logic.entities.product_spec import ProductSpec
from routecost.config import STANDARD_ANNUAL_HOURS
from routecost.exceptions import (
    ValidationError, InvalidQuantity, InactiveRouteReference, InvalidRouteDefinition, ConfigurationError,
)
from routecost.utils.money import (
    to_decimal, round_money, round_hours, round_time, round_unit_cost, ZERO, ONE, HUNDRED,
)

import logging
logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = Decimal("3600")
MINUTES_PER_HOUR = Decimal("60")


@dataclass
class CostBreakdown:
    quantity: int
    material_cost: Decimal
    process_cost: Decimal
    overhead_cost: Decimal
    total_cost: Decimal
    unit_cost: Decimal
    selling_price: Decimal
    margin_percentage: Optional[Decimal]
    details: List[CostCalculationDetailEntity] = field(default_factory=list)


def equipment_hourly_cost(equipment: EquipmentEntity) -> Decimal:
    """Straight-line depreciation plus maintenance, both spread over STANDARD_ANNUAL_HOURS."""
    if equipment.depreciation_years is None or equipment.depreciation_years <= 0:
        raise ConfigurationError(f"Equipment {equipment.id} ('{equipment.code}') has no positive depreciation period.")
    depreciation = equipment.purchase_cost / (Decimal(equipment.depreciation_years) * STANDARD_ANNUAL_HOURS)
    maintenance = equipment.maintenance_cost_per_year / STANDARD_ANNUAL_HOURS
    return depreciation + maintenance


def validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity)
    return quantity


def validate_margin(margin_percent: Any) -> Optional[Decimal]:
    if margin_percent is None:
        return None
    margin = to_decimal(margin_percent, "margin_percent")
    if margin < ZERO or margin >= HUNDRED:
        raise ValidationError(f"Margin must be at least 0 and below 100 percent, got {margin}.")
    return margin


class CostCalculator:

    def _check_route(self, route: ProductProcessRouteEntity) -> List[ProcessRouteDetailEntity]:
        if not route.is_active:
            raise ValidationError(f"Process route {route.id} ('{route.route_name}') is inactive.")
        details = route.ordered_details()
        if not details:
            raise ValidationError(f"Process route {route.id} ('{route.route_name}') has no steps.")

        seen = set()
        for detail in details:
            if detail.sequence in seen:
                logger.error(f"Route {route.id} repeats sequence {detail.sequence}.")
                raise InvalidRouteDefinition(f"Route {route.id} repeats sequence {detail.sequence}.")
            seen.add(detail.sequence)

            if not (ZERO < detail.yield_rate <= ONE):
                logger.error(f"Route {route.id} sequence {detail.sequence} has yield rate {detail.yield_rate}.")
                raise InvalidRouteDefinition(
                    f"Route {route.id} sequence {detail.sequence}: yield rate {detail.yield_rate} is outside (0, 1]."
                )

            step = detail.process_step
            if step is None:
                raise InvalidRouteDefinition(f"Route {route.id} sequence {detail.sequence}: process step not loaded.")
            if not step.is_active:
                logger.error(f"Route {route.id} references inactive process step {step.id} at sequence {detail.sequence}.")
                raise InactiveRouteReference("process step", step.id, detail.sequence)
            if detail.equipment is not None and not detail.equipment.is_active:
                logger.error(f"Route {route.id} references inactive equipment {detail.equipment.id} at sequence {detail.sequence}.")
                raise InactiveRouteReference("equipment", detail.equipment.id, detail.sequence)
        return details

    def _cost_step(self, detail: ProcessRouteDetailEntity, quantity: int, rates: CostRateSnapshot,
                   material_cost: Decimal, accumulated: Decimal,
                   yield_before: Decimal, yield_after: Decimal) -> CostCalculationDetailEntity:
        step = detail.process_step
        equipment = detail.equipment

        setup_minutes = detail.setup_time_override if detail.setup_time_override is not None else step.setup_time_minutes
        cycle_seconds = detail.cycle_time_override if detail.cycle_time_override is not None else step.cycle_time_seconds
        hours = setup_minutes / MINUTES_PER_HOUR + cycle_seconds * quantity / SECONDS_PER_HOUR

        labor = round_money(hours * Decimal(step.labor_required) * rates.labor_rate)
        if equipment is not None:
            equipment_cost = round_money(hours * equipment_hourly_cost(equipment))
            electricity = round_money(hours * equipment.power_consumption * rates.electricity_rate)
        else:
            equipment_cost = electricity = round_money(ZERO)
        other = round_money(detail.other_cost)

        # Units scrapped here carry material plus everything spent on them so far.
        lost_units = Decimal(quantity) * (yield_before - yield_after)
        cost_to_date_per_unit = (material_cost + accumulated) / Decimal(quantity)
        yield_loss = round_money(lost_units * cost_to_date_per_unit)

        subtotal = labor + equipment_cost + electricity + other + yield_loss
        return CostCalculationDetailEntity(
            sequence=detail.sequence,
            process_step_id=step.id,
            process_step_name=step.name,
            equipment_id=equipment.id if equipment is not None else None,
            equipment_name=equipment.name if equipment is not None else None,
            setup_time=round_time(setup_minutes),
            cycle_time=round_time(cycle_seconds),
            total_time_hours=round_hours(hours),
            yield_rate=detail.yield_rate,
            labor_cost=labor,
            equipment_cost=equipment_cost,
            electricity_cost=electricity,
            other_cost=other,
            yield_loss_cost=yield_loss,
            subtotal_cost=subtotal,
            notes=detail.notes,
        )

    def calculate(self, product_spec: ProductSpec, quantity: Any, material_cost: Any,
                  route: ProductProcessRouteEntity, rates: CostRateSnapshot,
                  margin_percent: Any = None) -> CostBreakdown:
        quantity = validate_quantity(quantity)
        material = round_money(to_decimal(material_cost, "material_cost"))
        if material < ZERO:
            raise ValidationError(f"Material cost cannot be negative, got {material}.")
        margin = validate_margin(margin_percent)
        details = self._check_route(route)

        logger.debug(f"Costing '{product_spec.name}' x{quantity} over route {route.id} ({len(details)} steps), rates as of {rates.as_of}.")

        running_yield = ONE
        accumulated = round_money(ZERO)
        rows: List[CostCalculationDetailEntity] = []
        for detail in details:
            yield_after = running_yield * detail.yield_rate
            row = self._cost_step(detail, quantity, rates, material, accumulated, running_yield, yield_after)
            rows.append(row)
            accumulated += row.subtotal_cost
            running_yield = yield_after

        process_cost = accumulated
        overhead_cost = round_money((material + process_cost) * rates.overhead_rate)
        total_cost = material + process_cost + overhead_cost
        unit_cost = round_unit_cost(total_cost / Decimal(quantity), quantity)
        if margin is None:
            selling_price = total_cost
        else:
            selling_price = round_money(total_cost / (ONE - margin / HUNDRED))

        return CostBreakdown(
            quantity=quantity,
            material_cost=material,
            process_cost=process_cost,
            overhead_cost=overhead_cost,
            total_cost=total_cost,
            unit_cost=unit_cost,
            selling_price=selling_price,
            margin_percentage=margin,
            details=rows,
        )
