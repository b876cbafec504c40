# routecost/business_logic/entities/process_route_entity.py
from dataclasses import dataclass, field
from typing import Optional, List
from .base_entity import BaseEntity
from .process_route_detail_entity import ProcessRouteDetailEntity

@dataclass
class ProductProcessRouteEntity(BaseEntity):
    product_category: str
    route_name: str
    material_type: Optional[str] = None
    size_range: Optional[str] = None
    is_default: bool = False
    is_active: bool = True

    details: List[ProcessRouteDetailEntity] = field(default_factory=list, init=False, compare=False, repr=False)

    def ordered_details(self) -> List[ProcessRouteDetailEntity]:
        return sorted(self.details, key=lambda d: d.sequence)
