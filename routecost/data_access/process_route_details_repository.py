# routecost/data_access/process_route_details_repository.py
import sqlite3
from typing import List, Optional
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.process_route_detail_entity import ProcessRouteDetailEntity
import logging

logger = logging.getLogger(__name__)

class ProcessRouteDetailsRepository(BaseRepository[ProcessRouteDetailEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=ProcessRouteDetailEntity,
                         table_name="process_route_details")

    def get_by_route_id(self, route_id: int, conn: Optional[sqlite3.Connection] = None) -> List[ProcessRouteDetailEntity]:
        return self.find_by_criteria({"route_id": route_id}, order_by="sequence", conn=conn)
