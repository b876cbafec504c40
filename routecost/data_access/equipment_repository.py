# routecost/data_access/equipment_repository.py
import sqlite3
from typing import List, Optional
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.equipment_entity import EquipmentEntity
import logging

logger = logging.getLogger(__name__)

class EquipmentRepository(BaseRepository[EquipmentEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=EquipmentEntity,
                         table_name="equipment")

    def get_by_code(self, code: str, conn: Optional[sqlite3.Connection] = None) -> Optional[EquipmentEntity]:
        rows = self.find_by_criteria({"code": code}, limit=1, conn=conn)
        return rows[0] if rows else None

    def get_by_category(self, process_category_id: Optional[int] = None, active_only: bool = True,
                        conn: Optional[sqlite3.Connection] = None) -> List[EquipmentEntity]:
        criteria = {}
        if process_category_id is not None:
            criteria["process_category_id"] = process_category_id
        if active_only:
            criteria["is_active"] = True
        return self.find_by_criteria(criteria, order_by="code", conn=conn)
