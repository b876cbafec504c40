# routecost/data_access/process_steps_repository.py
import sqlite3
from typing import List, Optional
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.process_step_entity import ProcessStepEntity
import logging

logger = logging.getLogger(__name__)

class ProcessStepsRepository(BaseRepository[ProcessStepEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=ProcessStepEntity,
                         table_name="process_steps")

    def get_by_code(self, code: str, conn: Optional[sqlite3.Connection] = None) -> Optional[ProcessStepEntity]:
        rows = self.find_by_criteria({"code": code}, limit=1, conn=conn)
        return rows[0] if rows else None

    def get_by_category(self, process_category_id: Optional[int] = None, active_only: bool = True,
                        conn: Optional[sqlite3.Connection] = None) -> List[ProcessStepEntity]:
        criteria = {}
        if process_category_id is not None:
            criteria["process_category_id"] = process_category_id
        if active_only:
            criteria["is_active"] = True
        return self.find_by_criteria(criteria, order_by="process_category_id, sort_order, id", conn=conn)
