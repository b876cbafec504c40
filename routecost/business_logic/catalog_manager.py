# routecost/business_logic/catalog_manager.py

import sqlite3
from typing import Optional, List, Dict, Any

from routecost.business_logic.entities.process_category_entity import ProcessCategoryEntity
from routecost.business_logic.entities.equipment_entity import EquipmentEntity
from routecost.business_logic.entities.process_step_entity import ProcessStepEntity
from routecost.business_logic.entities.process_route_entity import ProductProcessRouteEntity
from routecost.business_logic.entities.process_route_detail_entity import ProcessRouteDetailEntity

from routecost.data_access.database_manager import DatabaseManager
from routecost.data_access.process_categories_repository import ProcessCategoriesRepository
from routecost.data_access.equipment_repository import EquipmentRepository
from routecost.data_access.process_steps_repository import ProcessStepsRepository
from routecost.data_access.process_routes_repository import ProcessRoutesRepository
from routecost.data_access.process_route_details_repository import ProcessRouteDetailsRepository
from routecost.exceptions import ValidationError, CatalogRecordNotFound, InvalidRouteDefinition
from routecost.utils.money import to_decimal, to_optional_decimal, ZERO, ONE

import logging
logger = logging.getLogger(__name__)


class CatalogManager:
    """
    Administrator-side maintenance of categories, equipment, process steps and routes,
    plus the read paths the calculation uses (routes with their details, steps and
    equipment attached).
    """

    def __init__(self,
                 db_manager: DatabaseManager,
                 category_repository: ProcessCategoriesRepository,
                 equipment_repository: EquipmentRepository,
                 step_repository: ProcessStepsRepository,
                 route_repository: ProcessRoutesRepository,
                 route_detail_repository: ProcessRouteDetailsRepository):
        if db_manager is None: raise ValueError("db_manager cannot be None")
        if category_repository is None: raise ValueError("category_repository cannot be None")
        if equipment_repository is None: raise ValueError("equipment_repository cannot be None")
        if step_repository is None: raise ValueError("step_repository cannot be None")
        if route_repository is None: raise ValueError("route_repository cannot be None")
        if route_detail_repository is None: raise ValueError("route_detail_repository cannot be None")

        self.db_manager = db_manager
        self.category_repo = category_repository
        self.equipment_repo = equipment_repository
        self.step_repo = step_repository
        self.route_repo = route_repository
        self.route_detail_repo = route_detail_repository

    # --- Categories ---

    def create_category(self, code: str, name: str, name_en: Optional[str] = None,
                        description: Optional[str] = None, sort_order: int = 0) -> ProcessCategoryEntity:
        logger.info(f"Creating process category '{code}'.")
        if not code or not code.strip(): raise ValidationError("Process category code cannot be empty.")
        if not name or not name.strip(): raise ValidationError("Process category name cannot be empty.")
        if self.category_repo.get_by_code(code.strip()):
            raise ValidationError(f"Process category code '{code.strip()}' already exists.")
        category = ProcessCategoryEntity(code=code.strip(), name=name.strip(), name_en=name_en,
                                         description=description, sort_order=sort_order)
        return self.category_repo.add(category)

    def get_category(self, category_id: int) -> ProcessCategoryEntity:
        category = self.category_repo.get_by_id(category_id)
        if category is None:
            raise CatalogRecordNotFound("Process category", category_id)
        return category

    def list_categories(self) -> List[ProcessCategoryEntity]:
        return self.category_repo.get_active()

    # --- Equipment ---

    def create_equipment(self, code: str, name: str, process_category_id: int,
                         purchase_cost: Any = ZERO, depreciation_years: int = 10,
                         maintenance_cost_per_year: Any = ZERO, power_consumption: Any = ZERO,
                         capacity_per_hour: Any = ZERO, name_en: Optional[str] = None,
                         specs: Optional[str] = None, location: Optional[str] = None) -> EquipmentEntity:
        logger.info(f"Creating equipment '{code}' in category {process_category_id}.")
        if not code or not code.strip(): raise ValidationError("Equipment code cannot be empty.")
        if not name or not name.strip(): raise ValidationError("Equipment name cannot be empty.")
        self.get_category(process_category_id)
        if self.equipment_repo.get_by_code(code.strip()):
            raise ValidationError(f"Equipment code '{code.strip()}' already exists.")
        if not isinstance(depreciation_years, int) or depreciation_years <= 0:
            raise ValidationError(f"Depreciation years must be a positive integer, got {depreciation_years!r}.")

        amounts = {
            "purchase_cost": to_decimal(purchase_cost, "purchase_cost"),
            "maintenance_cost_per_year": to_decimal(maintenance_cost_per_year, "maintenance_cost_per_year"),
            "power_consumption": to_decimal(power_consumption, "power_consumption"),
            "capacity_per_hour": to_decimal(capacity_per_hour, "capacity_per_hour"),
        }
        for field_name, amount in amounts.items():
            if amount < ZERO:
                raise ValidationError(f"Equipment {field_name} cannot be negative.")

        equipment = EquipmentEntity(code=code.strip(), name=name.strip(), process_category_id=process_category_id,
                                    name_en=name_en, specs=specs, depreciation_years=depreciation_years,
                                    location=location, **amounts)
        return self.equipment_repo.add(equipment)

    def get_equipment(self, equipment_id: int, conn: Optional[sqlite3.Connection] = None) -> EquipmentEntity:
        equipment = self.equipment_repo.get_by_id(equipment_id, conn=conn)
        if equipment is None:
            raise CatalogRecordNotFound("Equipment", equipment_id)
        return equipment

    def list_equipment(self, process_category_id: Optional[int] = None) -> List[EquipmentEntity]:
        return self.equipment_repo.get_by_category(process_category_id)

    def set_equipment_active(self, equipment_id: int, is_active: bool) -> EquipmentEntity:
        equipment = self.get_equipment(equipment_id)
        equipment.is_active = is_active
        logger.info(f"Equipment {equipment_id} ('{equipment.code}') is_active set to {is_active}.")
        return self.equipment_repo.update(equipment)

    # --- Process steps ---

    def create_process_step(self, code: str, name: str, process_category_id: int,
                            setup_time_minutes: Any = ZERO, cycle_time_seconds: Any = ZERO,
                            labor_required: int = 1, default_equipment_id: Optional[int] = None,
                            name_en: Optional[str] = None, description: Optional[str] = None,
                            sort_order: int = 0) -> ProcessStepEntity:
        logger.info(f"Creating process step '{code}' in category {process_category_id}.")
        if not code or not code.strip(): raise ValidationError("Process step code cannot be empty.")
        if not name or not name.strip(): raise ValidationError("Process step name cannot be empty.")
        self.get_category(process_category_id)
        if default_equipment_id is not None:
            self.get_equipment(default_equipment_id)
        if self.step_repo.get_by_code(code.strip()):
            raise ValidationError(f"Process step code '{code.strip()}' already exists.")
        if not isinstance(labor_required, int) or labor_required < 0:
            raise ValidationError(f"Labor required must be a non-negative integer, got {labor_required!r}.")

        setup = to_decimal(setup_time_minutes, "setup_time_minutes")
        cycle = to_decimal(cycle_time_seconds, "cycle_time_seconds")
        if setup < ZERO or cycle < ZERO:
            raise ValidationError("Setup and cycle times cannot be negative.")

        step = ProcessStepEntity(code=code.strip(), name=name.strip(), process_category_id=process_category_id,
                                 default_equipment_id=default_equipment_id, name_en=name_en,
                                 setup_time_minutes=setup, cycle_time_seconds=cycle,
                                 labor_required=labor_required, description=description,
                                 sort_order=sort_order)
        return self.step_repo.add(step)

    def get_process_step(self, step_id: int, conn: Optional[sqlite3.Connection] = None) -> ProcessStepEntity:
        step = self.step_repo.get_by_id(step_id, conn=conn)
        if step is None:
            raise CatalogRecordNotFound("Process step", step_id)
        return step

    def list_process_steps(self, process_category_id: Optional[int] = None) -> List[ProcessStepEntity]:
        return self.step_repo.get_by_category(process_category_id)

    def set_process_step_active(self, step_id: int, is_active: bool) -> ProcessStepEntity:
        step = self.get_process_step(step_id)
        step.is_active = is_active
        logger.info(f"Process step {step_id} ('{step.code}') is_active set to {is_active}.")
        return self.step_repo.update(step)

    # --- Routes ---

    def _build_route_details(self, details_data: List[Dict[str, Any]]) -> List[ProcessRouteDetailEntity]:
        if not details_data:
            raise InvalidRouteDefinition("A process route needs at least one step.")
        details = []
        seen_sequences = set()
        for idx, item in enumerate(details_data):
            sequence = item.get("sequence", idx + 1)
            if not isinstance(sequence, int) or sequence <= 0:
                raise InvalidRouteDefinition(f"Route line {idx + 1}: sequence must be a positive integer, got {sequence!r}.")
            if sequence in seen_sequences:
                raise InvalidRouteDefinition(f"Route line {idx + 1}: sequence {sequence} is used twice.")
            seen_sequences.add(sequence)

            step_id = item.get("process_step_id")
            if step_id is None:
                raise InvalidRouteDefinition(f"Route line {idx + 1}: process_step_id is required.")
            self.get_process_step(step_id)
            equipment_id = item.get("equipment_id")
            if equipment_id is not None:
                self.get_equipment(equipment_id)

            yield_rate = to_decimal(item.get("yield_rate", ONE), "yield_rate")
            if not (ZERO < yield_rate <= ONE):
                raise InvalidRouteDefinition(f"Route line {idx + 1}: yield rate {yield_rate} is outside (0, 1].")
            other_cost = to_decimal(item.get("other_cost", ZERO), "other_cost")
            if other_cost < ZERO:
                raise InvalidRouteDefinition(f"Route line {idx + 1}: other cost cannot be negative.")

            details.append(ProcessRouteDetailEntity(
                sequence=sequence,
                process_step_id=step_id,
                equipment_id=equipment_id,
                setup_time_override=to_optional_decimal(item.get("setup_time_override"), "setup_time_override"),
                cycle_time_override=to_optional_decimal(item.get("cycle_time_override"), "cycle_time_override"),
                yield_rate=yield_rate,
                other_cost=other_cost,
                notes=item.get("notes"),
            ))
        return details

    def create_route(self, product_category: str, route_name: str, details_data: List[Dict[str, Any]],
                     material_type: Optional[str] = None, size_range: Optional[str] = None,
                     is_default: bool = False) -> ProductProcessRouteEntity:
        """
        details_data items: {"sequence", "process_step_id", "equipment_id"?, "setup_time_override"?,
        "cycle_time_override"?, "yield_rate"?, "other_cost"?, "notes"?}
        """
        logger.info(f"Creating process route '{route_name}' for category '{product_category}'.")
        if not product_category or not product_category.strip():
            raise ValidationError("Product category cannot be empty.")
        if not route_name or not route_name.strip():
            raise ValidationError("Route name cannot be empty.")
        details = self._build_route_details(details_data)

        route = ProductProcessRouteEntity(product_category=product_category.strip(), route_name=route_name.strip(),
                                          material_type=material_type, size_range=size_range,
                                          is_default=is_default)
        with self.db_manager.transaction() as conn:
            self.route_repo.add(route, conn=conn)
            for detail in details:
                detail.route_id = route.id
                self.route_detail_repo.add(detail, conn=conn)
        logger.info(f"Process route ID {route.id} created with {len(details)} step(s).")
        return self.get_route_with_details(route.id)

    def set_route_active(self, route_id: int, is_active: bool) -> ProductProcessRouteEntity:
        route = self.route_repo.get_by_id(route_id)
        if route is None:
            raise CatalogRecordNotFound("Process route", route_id)
        route.is_active = is_active
        logger.info(f"Process route {route_id} is_active set to {is_active}.")
        return self.route_repo.update(route)

    def get_route_with_details(self, route_id: int, conn: Optional[sqlite3.Connection] = None) -> ProductProcessRouteEntity:
        """Route with its details ordered by sequence, each carrying its step and resolved equipment."""
        logger.debug(f"Fetching process route with details for ID: {route_id}")
        route = self.route_repo.get_by_id(route_id, conn=conn)
        if route is None:
            raise CatalogRecordNotFound("Process route", route_id)
        route.details = self.route_detail_repo.get_by_route_id(route_id, conn=conn)
        for detail in route.details:
            self.attach_step_and_equipment(detail, conn=conn)
        return route

    def attach_step_and_equipment(self, detail: ProcessRouteDetailEntity,
                                  conn: Optional[sqlite3.Connection] = None) -> ProcessRouteDetailEntity:
        """Equipment is the detail's override, else the step's default, else none."""
        detail.process_step = self.get_process_step(detail.process_step_id, conn=conn)
        equipment_id = detail.equipment_id if detail.equipment_id is not None else detail.process_step.default_equipment_id
        detail.equipment = self.get_equipment(equipment_id, conn=conn) if equipment_id is not None else None
        return detail

    def list_active_routes_for_category(self, product_category: str,
                                        conn: Optional[sqlite3.Connection] = None) -> List[ProductProcessRouteEntity]:
        return self.route_repo.get_active_by_category(product_category, conn=conn)

    def list_routes(self, product_category: Optional[str] = None) -> List[ProductProcessRouteEntity]:
        return self.route_repo.list_routes(product_category)
