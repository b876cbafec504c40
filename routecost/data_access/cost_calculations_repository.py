# routecost/data_access/cost_calculations_repository.py
import sqlite3
from typing import List, Optional, Dict, Any, Tuple
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.cost_calculation_entity import CostCalculationEntity
from routecost.constants import CalculationStatus
import logging

logger = logging.getLogger(__name__)

class CostCalculationsRepository(BaseRepository[CostCalculationEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=CostCalculationEntity,
                         table_name="cost_calculations")

    def get_by_calculation_no(self, calculation_no: str,
                              conn: Optional[sqlite3.Connection] = None) -> Optional[CostCalculationEntity]:
        rows = self.find_by_criteria({"calculation_no": calculation_no}, limit=1, conn=conn)
        return rows[0] if rows else None

    def count_with_number_prefix(self, prefix: str, conn: Optional[sqlite3.Connection] = None) -> int:
        return self.count_by_criteria({"calculation_no": ("LIKE", f"{prefix}%")}, conn=conn)

    def get_page(self, status: Optional[CalculationStatus], page: int, page_size: int,
                 conn: Optional[sqlite3.Connection] = None) -> Tuple[List[CostCalculationEntity], int]:
        """One page (1-based) of calculations, newest first, plus the total row count."""
        criteria = {"status": status} if status is not None else {}
        total = self.count_by_criteria(criteria, conn=conn)
        rows = self.find_by_criteria(criteria, order_by="calculated_at DESC, id DESC",
                                     limit=page_size, offset=(page - 1) * page_size, conn=conn)
        return rows, total

    def get_by_inquiry(self, inquiry_id: str, conn: Optional[sqlite3.Connection] = None) -> List[CostCalculationEntity]:
        return self.find_by_criteria({"inquiry_id": inquiry_id}, order_by="calculated_at DESC, id DESC", conn=conn)

    def update_status_if(self, calculation_id: int, expected_status: CalculationStatus,
                         new_status: CalculationStatus, changes: Optional[Dict[str, Any]] = None,
                         conn: Optional[sqlite3.Connection] = None) -> int:
        """
        Conditional transition: only touches the row while it is still in expected_status.
        Returns the number of rows changed (0 means someone else moved it first).
        """
        columns = {"status": new_status}
        columns.update(changes or {})
        set_clause = ', '.join(f"{key} = ?" for key in columns)
        params = tuple(self._to_db_value(v) for v in columns.values())
        query = (
            f"UPDATE {self._table_name} SET {set_clause}, version = version + 1 "
            "WHERE id = ? AND status = ?"
        )
        cursor = self.db_manager.execute_query(
            query, params + (calculation_id, expected_status.value), conn=conn
        )
        logger.debug(f"update_status_if: calculation {calculation_id} {expected_status.value}->{new_status.value}, rows={cursor.rowcount}")
        return cursor.rowcount

    def update_if_status(self, entity: CostCalculationEntity, expected_status: CalculationStatus,
                         conn: Optional[sqlite3.Connection] = None) -> int:
        """Full-row rewrite guarded by the current status; bumps version. Returns rows changed."""
        if entity.id is None:
            raise ValueError("CostCalculationEntity must have an ID to be updated.")
        data = self._entity_to_dict_for_db(entity)
        for immutable in ('id', 'calculation_no', 'version'):
            data.pop(immutable, None)
        set_clause = ', '.join(f"{key} = ?" for key in data)
        query = (
            f"UPDATE {self._table_name} SET {set_clause}, version = version + 1 "
            "WHERE id = ? AND status = ?"
        )
        cursor = self.db_manager.execute_query(
            query, tuple(data.values()) + (entity.id, expected_status.value), conn=conn
        )
        return cursor.rowcount
