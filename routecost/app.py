# routecost/app.py
import os
import logging
import logging.config
from datetime import date, datetime
from typing import Optional, List, Tuple, Callable, Any, Union

# --- Configuration and Constants ---
from routecost.config import DATABASE_PATH, LOGGING_CONFIG, LOG_FILE_PATH
from routecost.constants import CalculationStatus, CostParameterType

# --- Data Access Layer (DAL) ---
from routecost.data_access.database_manager import DatabaseManager
from routecost.data_access.process_categories_repository import ProcessCategoriesRepository
from routecost.data_access.equipment_repository import EquipmentRepository
from routecost.data_access.process_steps_repository import ProcessStepsRepository
from routecost.data_access.process_routes_repository import ProcessRoutesRepository
from routecost.data_access.process_route_details_repository import ProcessRouteDetailsRepository
from routecost.data_access.cost_parameters_repository import CostParametersRepository
from routecost.data_access.cost_calculations_repository import CostCalculationsRepository
from routecost.data_access.cost_calculation_details_repository import CostCalculationDetailsRepository

# --- Business Logic Layer (BLL) ---
from routecost.business_logic.entities import (
    CalculationRequest, CostCalculationEntity, CostParameterEntity, CostSummary,
    EquipmentEntity, ProcessStepEntity, ProductProcessRouteEntity,
)
from routecost.business_logic.catalog_manager import CatalogManager
from routecost.business_logic.cost_parameter_manager import CostParameterManager
from routecost.business_logic.route_resolver import RouteResolver
from routecost.business_logic.cost_calculator import CostCalculator
from routecost.business_logic.cost_calculation_manager import CostCalculationManager

logger = logging.getLogger(__name__)


def setup_logging(config: Optional[dict] = None) -> None:
    """Applies LOGGING_CONFIG (or the given dictConfig dict), creating the log directory first."""
    config = config or LOGGING_CONFIG
    file_handler = config.get('handlers', {}).get('file')
    log_path = file_handler.get('filename', LOG_FILE_PATH) if file_handler else None
    if log_path:
        log_dir = os.path.dirname(os.path.abspath(log_path))
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)
    logging.config.dictConfig(config)


class CostEngine:
    """
    The boundary callers use. Builds repositories and managers over one DatabaseManager
    and forwards each operation to the manager that owns it.
    """

    def __init__(self, db_manager: DatabaseManager, clock: Callable[[], datetime] = datetime.now):
        if db_manager is None: raise ValueError("db_manager cannot be None")
        self.db_manager = db_manager

        logger.debug("Initializing Repositories...")
        self.categories_repo = ProcessCategoriesRepository(db_manager)
        self.equipment_repo = EquipmentRepository(db_manager)
        self.steps_repo = ProcessStepsRepository(db_manager)
        self.routes_repo = ProcessRoutesRepository(db_manager)
        self.route_details_repo = ProcessRouteDetailsRepository(db_manager)
        self.cost_parameters_repo = CostParametersRepository(db_manager)
        self.calculations_repo = CostCalculationsRepository(db_manager)
        self.calculation_details_repo = CostCalculationDetailsRepository(db_manager)

        logger.debug("Initializing Managers...")
        self.catalog_manager = CatalogManager(
            db_manager=db_manager,
            category_repository=self.categories_repo,
            equipment_repository=self.equipment_repo,
            step_repository=self.steps_repo,
            route_repository=self.routes_repo,
            route_detail_repository=self.route_details_repo,
        )
        self.cost_parameter_manager = CostParameterManager(db_manager, self.cost_parameters_repo)
        self.route_resolver = RouteResolver(self.catalog_manager)
        self.calculation_manager = CostCalculationManager(
            db_manager=db_manager,
            calculation_repository=self.calculations_repo,
            calculation_detail_repository=self.calculation_details_repo,
            catalog_manager=self.catalog_manager,
            cost_parameter_manager=self.cost_parameter_manager,
            route_resolver=self.route_resolver,
            calculator=CostCalculator(),
            clock=clock,
        )

    # --- Routes ---

    def resolve_route(self, product_category: str, material_type: Optional[str] = None,
                      size_range: Optional[str] = None) -> ProductProcessRouteEntity:
        with self.db_manager.snapshot() as conn:
            return self.route_resolver.resolve(product_category, material_type, size_range, conn=conn)

    def list_process_routes(self, product_category: Optional[str] = None) -> List[ProductProcessRouteEntity]:
        return self.catalog_manager.list_routes(product_category)

    def list_process_steps(self, process_category_id: Optional[int] = None) -> List[ProcessStepEntity]:
        return self.catalog_manager.list_process_steps(process_category_id)

    def list_equipment(self, process_category_id: Optional[int] = None) -> List[EquipmentEntity]:
        return self.catalog_manager.list_equipment(process_category_id)

    # --- Calculations ---

    def calculate(self, request: CalculationRequest) -> CostCalculationEntity:
        return self.calculation_manager.calculate(request)

    def get_calculation(self, calculation_id: int) -> CostCalculationEntity:
        return self.calculation_manager.get_calculation(calculation_id)

    def list_calculations(self, status: Optional[Union[CalculationStatus, str]] = None,
                          page: int = 1, page_size: int = 20) -> Tuple[List[CostCalculationEntity], int]:
        return self.calculation_manager.list_calculations(status, page, page_size)

    def list_calculations_for_inquiry(self, inquiry_id: str) -> List[CostCalculationEntity]:
        return self.calculation_manager.list_calculations_for_inquiry(inquiry_id)

    def get_cost_summary(self, calculation_id: int) -> CostSummary:
        return self.calculation_manager.get_cost_summary(calculation_id)

    def replace_draft(self, calculation_id: int, request: CalculationRequest) -> CostCalculationEntity:
        return self.calculation_manager.replace_draft(calculation_id, request)

    def submit_calculation(self, calculation_id: int) -> CostCalculationEntity:
        return self.calculation_manager.submit_calculation(calculation_id)

    def approve_calculation(self, calculation_id: int, approver_id: str) -> CostCalculationEntity:
        return self.calculation_manager.approve_calculation(calculation_id, approver_id)

    def reject_calculation(self, calculation_id: int, reviewer_id: str,
                           reason: Optional[str] = None) -> CostCalculationEntity:
        return self.calculation_manager.reject_calculation(calculation_id, reviewer_id, reason)

    def reissue_calculation(self, calculation_id: int, requested_by: str, **overrides: Any) -> CostCalculationEntity:
        return self.calculation_manager.reissue_calculation(calculation_id, requested_by, **overrides)

    # --- Cost parameters ---

    def list_cost_parameters(self, parameter_type: Optional[Union[CostParameterType, str]] = None) -> List[CostParameterEntity]:
        return self.cost_parameter_manager.list_parameters(parameter_type)

    def update_cost_parameter(self, parameter_type: Union[CostParameterType, str], value: Any,
                              effective_date: date, **kwargs: Any) -> CostParameterEntity:
        return self.cost_parameter_manager.update_cost_parameter(parameter_type, value, effective_date, **kwargs)


def create_engine(db_path: Optional[str] = None, clock: Callable[[], datetime] = datetime.now) -> CostEngine:
    """Opens (creating if needed) the database at db_path and returns a ready engine."""
    db_manager = DatabaseManager(db_path or DATABASE_PATH)
    logger.info(f"Initializing database at {db_manager.db_path}...")
    try:
        db_manager.create_tables()
    except Exception as e:
        logger.error(f"FATAL: Could not initialize database: {e}", exc_info=True)
        raise
    return CostEngine(db_manager, clock=clock)
