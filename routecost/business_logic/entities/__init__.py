# routecost/business_logic/entities/__init__.py
from .base_entity import BaseEntity
from .process_category_entity import ProcessCategoryEntity
from .equipment_entity import EquipmentEntity
from .process_step_entity import ProcessStepEntity
from .process_route_detail_entity import ProcessRouteDetailEntity
from .process_route_entity import ProductProcessRouteEntity
from .cost_parameter_entity import CostParameterEntity
from .cost_calculation_detail_entity import CostCalculationDetailEntity
from .cost_calculation_entity import CostCalculationEntity
from .cost_rate_snapshot import CostRateSnapshot
from .cost_summary import CostSummary, ProcessCostBreakdown
from .product_spec import ProductSpec, CustomRouteLine, CalculationRequest

__all__ = [
    "BaseEntity", "ProcessCategoryEntity", "EquipmentEntity", "ProcessStepEntity",
    "ProcessRouteDetailEntity", "ProductProcessRouteEntity", "CostParameterEntity",
    "CostCalculationDetailEntity", "CostCalculationEntity", "CostRateSnapshot",
    "CostSummary", "ProcessCostBreakdown",
    "ProductSpec", "CustomRouteLine", "CalculationRequest",
]
