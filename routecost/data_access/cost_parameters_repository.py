# routecost/data_access/cost_parameters_repository.py
import sqlite3
from typing import List, Optional
from datetime import date
from routecost.data_access.base_repository import BaseRepository
from routecost.data_access.database_manager import DatabaseManager
from routecost.business_logic.entities.cost_parameter_entity import CostParameterEntity
from routecost.constants import CostParameterType
import logging

logger = logging.getLogger(__name__)

class CostParametersRepository(BaseRepository[CostParameterEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=CostParameterEntity,
                         table_name="cost_parameters")

    def get_effective(self, parameter_type: CostParameterType, as_of: date,
                      conn: Optional[sqlite3.Connection] = None) -> List[CostParameterEntity]:
        """
        Rows of the given type whose [effective_date, end_date) interval contains as_of.
        More than one row means overlapping intervals; the caller decides what to do.
        """
        query = (
            f"SELECT * FROM {self._table_name} "
            "WHERE parameter_type = ? AND effective_date <= ? AND (end_date IS NULL OR end_date > ?) "
            "ORDER BY effective_date DESC, id DESC"
        )
        rows = self.db_manager.fetch_all(
            query, (parameter_type.value, as_of.isoformat(), as_of.isoformat()), conn=conn
        )
        return [self._entity_from_row(dict(row)) for row in rows]

    def get_by_type(self, parameter_type: CostParameterType,
                    conn: Optional[sqlite3.Connection] = None) -> List[CostParameterEntity]:
        return self.find_by_criteria({"parameter_type": parameter_type},
                                     order_by="effective_date DESC, id DESC", conn=conn)

    def list_all(self, conn: Optional[sqlite3.Connection] = None) -> List[CostParameterEntity]:
        return self.get_all(order_by="parameter_type, effective_date DESC, id DESC", conn=conn)

    def close_open_ended(self, parameter_type: CostParameterType, end_date: date,
                         conn: Optional[sqlite3.Connection] = None) -> int:
        """Sets end_date on the open-ended row of this type that started before end_date."""
        query = (
            f"UPDATE {self._table_name} SET end_date = ? "
            "WHERE parameter_type = ? AND end_date IS NULL AND effective_date < ?"
        )
        cursor = self.db_manager.execute_query(
            query, (end_date.isoformat(), parameter_type.value, end_date.isoformat()), conn=conn
        )
        logger.debug(f"Closed {cursor.rowcount} open-ended '{parameter_type.value}' parameter(s) at {end_date}.")
        return cursor.rowcount
