# routecost/data_access/__init__.py

from .database_manager import DatabaseManager
from .base_repository import BaseRepository

from .process_categories_repository import ProcessCategoriesRepository
from .equipment_repository import EquipmentRepository
from .process_steps_repository import ProcessStepsRepository
from .process_routes_repository import ProcessRoutesRepository
from .process_route_details_repository import ProcessRouteDetailsRepository
from .cost_parameters_repository import CostParametersRepository
from .cost_calculations_repository import CostCalculationsRepository
from .cost_calculation_details_repository import CostCalculationDetailsRepository

ALL_REPOSITORIES = [
    ProcessCategoriesRepository, EquipmentRepository, ProcessStepsRepository,
    ProcessRoutesRepository, ProcessRouteDetailsRepository, CostParametersRepository,
    CostCalculationsRepository, CostCalculationDetailsRepository,
]
