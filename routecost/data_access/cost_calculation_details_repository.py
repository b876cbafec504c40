# routecost/data_access/cost_calculation_details_repository.py
import sqlite3
from typing import List, Optional
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.cost_calculation_detail_entity import CostCalculationDetailEntity
import logging

logger = logging.getLogger(__name__)

class CostCalculationDetailsRepository(BaseRepository[CostCalculationDetailEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=CostCalculationDetailEntity,
                         table_name="cost_calculation_details")

    def get_by_calculation_id(self, calculation_id: int,
                              conn: Optional[sqlite3.Connection] = None) -> List[CostCalculationDetailEntity]:
        return self.find_by_criteria({"calculation_id": calculation_id}, order_by="sequence", conn=conn)

    def delete_by_calculation_id(self, calculation_id: int, conn: Optional[sqlite3.Connection] = None) -> int:
        query = f"DELETE FROM {self._table_name} WHERE calculation_id = ?"
        cursor = self.db_manager.execute_query(query, (calculation_id,), conn=conn)
        logger.debug(f"Deleted {cursor.rowcount} detail row(s) of calculation {calculation_id}.")
        return cursor.rowcount
