# routecost/data_access/process_categories_repository.py
import sqlite3
from typing import List, Optional
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.process_category_entity import ProcessCategoryEntity
import logging

logger = logging.getLogger(__name__)

class ProcessCategoriesRepository(BaseRepository[ProcessCategoryEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=ProcessCategoryEntity,
                         table_name="process_categories")

    def get_by_code(self, code: str, conn: Optional[sqlite3.Connection] = None) -> Optional[ProcessCategoryEntity]:
        rows = self.find_by_criteria({"code": code}, limit=1, conn=conn)
        return rows[0] if rows else None

    def get_active(self, conn: Optional[sqlite3.Connection] = None) -> List[ProcessCategoryEntity]:
        return self.find_by_criteria({"is_active": True}, order_by="sort_order, id", conn=conn)
