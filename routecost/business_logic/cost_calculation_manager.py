# routecost/business_logic/cost_calculation_manager.py

import sqlite3
from typing import Optional, List, Tuple, Callable, Union, Any
from datetime import date, datetime
from dataclasses import replace

from routecost.business_logic.entities.cost_calculation_entity import CostCalculationEntity
from routecost.business_logic.entities.process_route_entity import ProductProcessRouteEntity
from routecost.business_logic.entities.process_route_detail_entity import ProcessRouteDetailEntity
from routecost.business_logic.entities.cost_summary import CostSummary, ProcessCostBreakdown
from routecost.business_logic.entities.product_spec import CalculationRequest, CustomRouteLine, ProductSpec
from routecost.business_logic.catalog_manager import CatalogManager
from routecost.business_logic.cost_parameter_manager import CostParameterManager
from routecost.business_logic.route_resolver import RouteResolver
from routecost.business_logic.cost_calculator import CostCalculator, CostBreakdown, validate_quantity, validate_margin

from routecost.data_access.database_manager import DatabaseManager
from routecost.data_access.cost_calculations_repository import CostCalculationsRepository
from routecost.data_access.cost_calculation_details_repository import CostCalculationDetailsRepository
from routecost.config import CALCULATION_NUMBER_PREFIX, CUSTOM_ROUTE_DEFAULT_YIELD, DEFAULT_CURRENCY
from routecost.constants import CalculationStatus, RouteSource, CALCULATION_DATE_FORMAT, ALLOWED_STATUS_TRANSITIONS
from routecost.exceptions import (
    ValidationError, CalculationNotFound, StatusConflict, SelfApprovalNotAllowed,
    MissingCostParameter, ConfigurationError,
)
from routecost.utils.money import to_decimal, to_optional_decimal, ZERO, ONE

import logging
logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class CostCalculationManager:
    """
    Runs calculations and owns the persisted records and their approval lifecycle:

        draft --submit--> submitted --approve--> approved
                                    --reject---> rejected

    Every transition is a conditional UPDATE on (id, status); losing a race surfaces
    as StatusConflict, never as a silent overwrite.
    """

    def __init__(self,
                 db_manager: DatabaseManager,
                 calculation_repository: CostCalculationsRepository,
                 calculation_detail_repository: CostCalculationDetailsRepository,
                 catalog_manager: CatalogManager,
                 cost_parameter_manager: CostParameterManager,
                 route_resolver: RouteResolver,
                 calculator: Optional[CostCalculator] = None,
                 clock: Callable[[], datetime] = datetime.now):
        if db_manager is None: raise ValueError("db_manager cannot be None")
        if calculation_repository is None: raise ValueError("calculation_repository cannot be None")
        if calculation_detail_repository is None: raise ValueError("calculation_detail_repository cannot be None")
        if catalog_manager is None: raise ValueError("catalog_manager cannot be None")
        if cost_parameter_manager is None: raise ValueError("cost_parameter_manager cannot be None")
        if route_resolver is None: raise ValueError("route_resolver cannot be None")

        self.db_manager = db_manager
        self.calc_repo = calculation_repository
        self.calc_detail_repo = calculation_detail_repository
        self.catalog_manager = catalog_manager
        self.parameter_manager = cost_parameter_manager
        self.route_resolver = route_resolver
        self.calculator = calculator or CostCalculator()
        self.clock = clock

    # --- Request handling ---

    def _validate_request(self, request: CalculationRequest) -> None:
        if request is None:
            raise ValidationError("Calculation request cannot be None.")
        spec = request.product_spec
        if spec is None:
            raise ValidationError("Product spec is required.")
        if not spec.name or not spec.name.strip():
            raise ValidationError("Product name cannot be empty.")
        if not spec.category or not spec.category.strip():
            raise ValidationError("Product category cannot be empty.")
        if not request.requested_by or not str(request.requested_by).strip():
            raise ValidationError("Requesting user is required.")
        validate_quantity(request.quantity)
        validate_margin(request.margin_percent)
        if request.route_id is not None and request.custom_route:
            raise ValidationError("Give either route_id or a custom route, not both.")

    def _build_custom_route(self, spec: ProductSpec, lines: Tuple[CustomRouteLine, ...],
                            conn: sqlite3.Connection) -> ProductProcessRouteEntity:
        """In-memory route from caller-supplied lines; nothing is written to the catalog."""
        details = []
        for idx, line in enumerate(lines, start=1):
            if line.process_step_id is None:
                raise ValidationError(f"Custom route line {idx}: process_step_id is required.")
            yield_rate = CUSTOM_ROUTE_DEFAULT_YIELD if line.yield_rate is None else to_decimal(line.yield_rate, "yield_rate")
            if not (ZERO < yield_rate <= ONE):
                raise ValidationError(f"Custom route line {idx}: yield rate {yield_rate} is outside (0, 1].")
            other_cost = to_decimal(line.other_cost, "other_cost") if line.other_cost is not None else ZERO
            if other_cost < ZERO:
                raise ValidationError(f"Custom route line {idx}: other cost cannot be negative.")
            setup = to_optional_decimal(line.setup_time, "setup_time")
            cycle = to_optional_decimal(line.cycle_time, "cycle_time")

            detail = ProcessRouteDetailEntity(
                sequence=idx,
                process_step_id=line.process_step_id,
                equipment_id=line.equipment_id,
                setup_time_override=setup if setup is not None and setup > ZERO else None,
                cycle_time_override=cycle if cycle is not None and cycle > ZERO else None,
                yield_rate=yield_rate,
                other_cost=other_cost,
                notes=line.notes,
            )
            details.append(self.catalog_manager.attach_step_and_equipment(detail, conn=conn))

        route = ProductProcessRouteEntity(product_category=spec.category, route_name=f"Custom Route - {spec.name}",
                                          material_type=spec.material_type, size_range=spec.size_range)
        route.details = details
        return route

    def _price(self, request: CalculationRequest, as_of: date) -> Tuple[ProductProcessRouteEntity, RouteSource, CostBreakdown]:
        """Loads route and rates on one read snapshot, then costs them outside any transaction."""
        spec = request.product_spec
        with self.db_manager.snapshot() as conn:
            if request.custom_route:
                route, source = self._build_custom_route(spec, request.custom_route, conn), RouteSource.CUSTOM
            elif request.route_id is not None:
                route, source = self.catalog_manager.get_route_with_details(request.route_id, conn=conn), RouteSource.EXPLICIT
            else:
                route, source = self.route_resolver.resolve_with_source(
                    spec.category, spec.material_type, spec.size_range, conn=conn
                )
            try:
                rates = self.parameter_manager.snapshot(as_of, conn=conn)
            except MissingCostParameter as e:
                logger.warning(f"Cannot cost '{spec.name}': {e}")
                raise

        try:
            breakdown = self.calculator.calculate(spec, request.quantity, request.material_cost, route, rates,
                                                  margin_percent=request.margin_percent)
        except ConfigurationError as e:
            logger.error(f"Catalog data prevents costing '{spec.name}' on route {route.id}: {e}")
            raise
        return route, source, breakdown

    def _build_entity(self, request: CalculationRequest, route: ProductProcessRouteEntity, source: RouteSource,
                      breakdown: CostBreakdown, as_of: date, now: datetime) -> CostCalculationEntity:
        spec = request.product_spec
        calculation = CostCalculationEntity(
            calculation_no="",
            product_name=spec.name.strip(),
            product_category=spec.category.strip(),
            material_type=spec.material_type,
            size_range=spec.size_range,
            inquiry_id=spec.inquiry_id,
            quantity=breakdown.quantity,
            material_cost=breakdown.material_cost,
            process_cost=breakdown.process_cost,
            overhead_cost=breakdown.overhead_cost,
            total_cost=breakdown.total_cost,
            unit_cost=breakdown.unit_cost,
            margin_percentage=breakdown.margin_percentage,
            selling_price=breakdown.selling_price,
            currency=DEFAULT_CURRENCY,
            route_id=route.id,
            route_name=route.route_name,
            route_source=source,
            parameters_as_of=as_of,
            calculated_by=str(request.requested_by).strip(),
            calculated_at=now,
        )
        calculation.details = breakdown.details
        return calculation

    def _next_calculation_no(self, now: datetime, conn: sqlite3.Connection) -> str:
        """CALC-YYYYMMDD-NNNN; must run inside the write transaction that inserts the row."""
        prefix = f"{CALCULATION_NUMBER_PREFIX}-{now.strftime(CALCULATION_DATE_FORMAT)}-"
        return f"{prefix}{self.calc_repo.count_with_number_prefix(prefix, conn=conn) + 1:04d}"

    def _insert(self, calculation: CostCalculationEntity, now: datetime) -> CostCalculationEntity:
        with self.db_manager.transaction() as conn:
            calculation.calculation_no = self._next_calculation_no(now, conn)
            self.calc_repo.add(calculation, conn=conn)
            for detail in calculation.details:
                detail.calculation_id = calculation.id
                self.calc_detail_repo.add(detail, conn=conn)
        logger.info(f"Cost calculation {calculation.calculation_no} (ID {calculation.id}) saved as draft: "
                    f"total {calculation.total_cost} {calculation.currency}, {len(calculation.details)} step(s).")
        return calculation

    def calculate(self, request: CalculationRequest,
                  previous_calculation_id: Optional[int] = None) -> CostCalculationEntity:
        spec = request.product_spec if request is not None else None
        logger.info(f"Calculating cost for '{getattr(spec, 'name', None)}' x{getattr(request, 'quantity', None)}.")
        self._validate_request(request)

        now = self.clock()
        as_of = request.parameters_as_of or now.date()
        route, source, breakdown = self._price(request, as_of)
        calculation = self._build_entity(request, route, source, breakdown, as_of, now)
        calculation.previous_calculation_id = previous_calculation_id
        return self._insert(calculation, now)

    def replace_draft(self, calculation_id: int, request: CalculationRequest) -> CostCalculationEntity:
        """Recomputes a draft in place; the calculation number and id are kept."""
        logger.info(f"Replacing draft calculation {calculation_id}.")
        existing = self._get_header(calculation_id)
        if existing.status != CalculationStatus.DRAFT:
            raise StatusConflict(calculation_id, CalculationStatus.DRAFT, existing.status, "replace")
        self._validate_request(request)

        now = self.clock()
        as_of = request.parameters_as_of or now.date()
        route, source, breakdown = self._price(request, as_of)
        replacement = self._build_entity(request, route, source, breakdown, as_of, now)
        replacement.id = existing.id
        replacement.calculation_no = existing.calculation_no
        replacement.previous_calculation_id = existing.previous_calculation_id

        with self.db_manager.transaction() as conn:
            if self.calc_repo.update_if_status(replacement, CalculationStatus.DRAFT, conn=conn) == 0:
                self._raise_conflict(calculation_id, CalculationStatus.DRAFT, "replace", conn)
            self.calc_detail_repo.delete_by_calculation_id(calculation_id, conn=conn)
            for detail in replacement.details:
                detail.calculation_id = calculation_id
                self.calc_detail_repo.add(detail, conn=conn)
        logger.info(f"Draft calculation {existing.calculation_no} replaced: total {replacement.total_cost}.")
        return self.get_calculation(calculation_id)

    # --- Reads ---

    def _get_header(self, calculation_id: int, conn: Optional[sqlite3.Connection] = None) -> CostCalculationEntity:
        calculation = self.calc_repo.get_by_id(calculation_id, conn=conn)
        if calculation is None:
            raise CalculationNotFound(calculation_id)
        return calculation

    def get_calculation(self, calculation_id: int) -> CostCalculationEntity:
        with self.db_manager.snapshot() as conn:
            calculation = self._get_header(calculation_id, conn=conn)
            calculation.details = self.calc_detail_repo.get_by_calculation_id(calculation_id, conn=conn)
        return calculation

    def list_calculations(self, status: Optional[Union[CalculationStatus, str]] = None,
                          page: int = 1, page_size: int = 20) -> Tuple[List[CostCalculationEntity], int]:
        if isinstance(status, str):
            try:
                status = CalculationStatus(status.strip().lower())
            except ValueError:
                raise ValidationError(f"Unknown calculation status '{status}'.")
        if not isinstance(page, int) or page < 1:
            raise ValidationError(f"Page must be a positive integer, got {page!r}.")
        if not isinstance(page_size, int) or not (1 <= page_size <= MAX_PAGE_SIZE):
            raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}, got {page_size!r}.")
        return self.calc_repo.get_page(status, page, page_size)

    def list_calculations_for_inquiry(self, inquiry_id: str) -> List[CostCalculationEntity]:
        if not inquiry_id:
            raise ValidationError("Inquiry id cannot be empty.")
        return self.calc_repo.get_by_inquiry(inquiry_id)

    def get_cost_summary(self, calculation_id: int) -> CostSummary:
        calculation = self.get_calculation(calculation_id)
        breakdown = [
            ProcessCostBreakdown(
                sequence=d.sequence,
                process_name=d.process_step_name,
                equipment_name=d.equipment_name,
                total_time_hours=d.total_time_hours,
                labor_cost=d.labor_cost,
                equipment_cost=d.equipment_cost,
                electricity_cost=d.electricity_cost,
                yield_loss_cost=d.yield_loss_cost,
                total_cost=d.subtotal_cost,
            )
            for d in calculation.details
        ]
        return CostSummary(
            calculation_no=calculation.calculation_no,
            material_cost=calculation.material_cost,
            process_cost=calculation.process_cost,
            overhead_cost=calculation.overhead_cost,
            total_cost=calculation.total_cost,
            unit_cost=calculation.unit_cost,
            suggested_price=calculation.selling_price,
            margin_percentage=calculation.margin_percentage,
            process_breakdown=breakdown,
        )

    # --- Lifecycle ---

    def _raise_conflict(self, calculation_id: int, expected: CalculationStatus, action: str,
                        conn: sqlite3.Connection) -> None:
        current = self._get_header(calculation_id, conn=conn)
        logger.warning(f"Cannot {action} calculation {calculation_id}: status is '{current.status.value}', "
                       f"expected '{expected.value}'.")
        raise StatusConflict(calculation_id, expected, current.status, action)

    def _transition(self, calculation_id: int, expected: CalculationStatus, new_status: CalculationStatus,
                    action: str, changes: dict) -> CostCalculationEntity:
        if new_status not in ALLOWED_STATUS_TRANSITIONS[expected]:
            raise ValueError(f"Transition {expected.value} -> {new_status.value} is not part of the lifecycle.")
        with self.db_manager.transaction() as conn:
            if self.calc_repo.update_status_if(calculation_id, expected, new_status, changes, conn=conn) == 0:
                self._raise_conflict(calculation_id, expected, action, conn)
        logger.info(f"Calculation {calculation_id}: {expected.value} -> {new_status.value}.")
        return self.get_calculation(calculation_id)

    def submit_calculation(self, calculation_id: int) -> CostCalculationEntity:
        logger.info(f"Submitting calculation {calculation_id}.")
        return self._transition(calculation_id, CalculationStatus.DRAFT, CalculationStatus.SUBMITTED,
                                "submit", {"submitted_at": self.clock()})

    def approve_calculation(self, calculation_id: int, approver_id: str) -> CostCalculationEntity:
        logger.info(f"User '{approver_id}' approving calculation {calculation_id}.")
        if not approver_id or not str(approver_id).strip():
            raise ValidationError("Approver is required.")
        approver_id = str(approver_id).strip()

        # Requester identity is checked before status: self-approval fails in every state.
        current = self._get_header(calculation_id)
        if current.calculated_by == approver_id:
            logger.warning(f"Self-approval refused: '{approver_id}' requested calculation {calculation_id}.")
            raise SelfApprovalNotAllowed(calculation_id, approver_id)
        if current.status != CalculationStatus.SUBMITTED:
            raise StatusConflict(calculation_id, CalculationStatus.SUBMITTED, current.status, "approve")

        return self._transition(calculation_id, CalculationStatus.SUBMITTED, CalculationStatus.APPROVED,
                                "approve", {"approved_by": approver_id, "approved_at": self.clock()})

    def reject_calculation(self, calculation_id: int, reviewer_id: str,
                           reason: Optional[str] = None) -> CostCalculationEntity:
        logger.info(f"User '{reviewer_id}' rejecting calculation {calculation_id}.")
        if not reviewer_id or not str(reviewer_id).strip():
            raise ValidationError("Reviewer is required.")
        return self._transition(calculation_id, CalculationStatus.SUBMITTED, CalculationStatus.REJECTED,
                                "reject", {"rejected_by": str(reviewer_id).strip(),
                                           "rejected_at": self.clock(),
                                           "rejection_reason": reason})

    def reissue_calculation(self, calculation_id: int, requested_by: str,
                            material_cost: Any = None, margin_percent: Any = None,
                            parameters_as_of: Optional[date] = None) -> CostCalculationEntity:
        """
        A rejected calculation is never reopened. It is re-issued as a new draft with the
        same product and route, linked back through previous_calculation_id. Material cost
        and margin default to the rejected values; rates are read for parameters_as_of
        (today when omitted).
        """
        logger.info(f"Re-issuing rejected calculation {calculation_id} for '{requested_by}'.")
        old = self.get_calculation(calculation_id)
        if old.status != CalculationStatus.REJECTED:
            raise StatusConflict(calculation_id, CalculationStatus.REJECTED, old.status, "reissue")

        request = CalculationRequest(
            product_spec=ProductSpec(name=old.product_name, category=old.product_category,
                                     material_type=old.material_type, size_range=old.size_range,
                                     inquiry_id=old.inquiry_id),
            quantity=old.quantity,
            material_cost=old.material_cost if material_cost is None else material_cost,
            requested_by=requested_by,
            margin_percent=old.margin_percentage if margin_percent is None else margin_percent,
            parameters_as_of=parameters_as_of,
        )
        if old.route_source == RouteSource.CUSTOM:
            request = replace(request, custom_route=tuple(
                CustomRouteLine(process_step_id=d.process_step_id, equipment_id=d.equipment_id,
                                setup_time=d.setup_time, cycle_time=d.cycle_time,
                                yield_rate=d.yield_rate, other_cost=d.other_cost, notes=d.notes)
                for d in old.details
            ))
        elif old.route_id is not None:
            request = replace(request, route_id=old.route_id)

        return self.calculate(request, previous_calculation_id=calculation_id)
