# routecost/data_access/process_routes_repository.py
import sqlite3
from typing import List, Optional
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.process_route_entity import ProductProcessRouteEntity
import logging

logger = logging.getLogger(__name__)

class ProcessRoutesRepository(BaseRepository[ProductProcessRouteEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=ProductProcessRouteEntity,
                         table_name="product_process_routes")

    def get_active_by_category(self, product_category: str,
                               conn: Optional[sqlite3.Connection] = None) -> List[ProductProcessRouteEntity]:
        """Active routes of a category in catalog order (id ascending)."""
        return self.find_by_criteria(
            {"product_category": product_category, "is_active": True}, order_by="id", conn=conn
        )

    def list_routes(self, product_category: Optional[str] = None, active_only: bool = True,
                    conn: Optional[sqlite3.Connection] = None) -> List[ProductProcessRouteEntity]:
        criteria = {}
        if product_category:
            criteria["product_category"] = product_category
        if active_only:
            criteria["is_active"] = True
        return self.find_by_criteria(
            criteria, order_by="product_category, is_default DESC, route_name", conn=conn
        )
