# routecost/data_access/base_repository.py

import sqlite3
import logging
from typing import Generic, TypeVar, Type, List, Optional, Dict, Any, TYPE_CHECKING, Union, Tuple
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from dataclasses import fields, MISSING

from routecost.data_access.database_manager import DatabaseManager

if TYPE_CHECKING:
    from routecost.business_logic.entities.base_entity import BaseEntity

logger = logging.getLogger(__name__)

T = TypeVar('T', bound='BaseEntity')


class BaseRepository(Generic[T]):
    """
    Maps one dataclass entity onto one table. Columns are the entity's init fields;
    fields declared with init=False (loaded relations) are never persisted.

    Every method accepts an optional open connection so a manager can run several
    repository calls inside one DatabaseManager.transaction() or snapshot().
    """

    def __init__(self, db_manager: DatabaseManager, model_type: Type[T], table_name: str):
        self.db_manager = db_manager
        self.model_type = model_type
        self._table_name = table_name
        self._db_columns = [f.name for f in fields(model_type) if f.init]
        logger.debug(f"BaseRepository for {self._table_name} initialized. Columns: {self._db_columns}")

    def get_by_id(self, entity_id: int, conn: Optional[sqlite3.Connection] = None) -> Optional[T]:
        query = f"SELECT * FROM {self._table_name} WHERE id = ?"
        row = self.db_manager.fetch_one(query, (entity_id,), conn=conn)
        return self._entity_from_row(dict(row)) if row else None

    def get_all(self, order_by: Optional[str] = None, conn: Optional[sqlite3.Connection] = None) -> List[T]:
        query = f"SELECT * FROM {self._table_name}"
        if order_by:
            query += f" ORDER BY {order_by}"
        rows = self.db_manager.fetch_all(query, conn=conn)
        return [self._entity_from_row(dict(row)) for row in rows]

    def _build_where(self, criteria: Dict[str, Any]) -> Tuple[str, List[Any]]:
        """
        criteria values are either a plain value (equality) or an (operator, value) tuple,
        e.g. {"effective_date": ("<=", as_of)}. None compares with IS NULL.
        Returns the WHERE clause (empty when there are no criteria) and its parameters.
        """
        conditions = []
        params: List[Any] = []
        for key, value in criteria.items():
            if isinstance(value, tuple) and len(value) == 2:
                operator, val = value
                conditions.append(f"{key} {operator} ?")
                params.append(self._to_db_value(val))
            elif value is None:
                conditions.append(f"{key} IS NULL")
            else:
                conditions.append(f"{key} = ?")
                params.append(self._to_db_value(value))
        where = " WHERE " + " AND ".join(conditions) if conditions else ""
        return where, params

    def find_by_criteria(self, criteria: Dict[str, Any], order_by: Optional[str] = None,
                         limit: Optional[int] = None, offset: Optional[int] = None,
                         conn: Optional[sqlite3.Connection] = None) -> List[T]:
        where, params = self._build_where(criteria)
        query = f"SELECT * FROM {self._table_name}{where}"
        if order_by:
            query += f" ORDER BY {order_by}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
            if offset:
                query += " OFFSET ?"
                params.append(offset)

        logger.debug(f"BaseRepository.find_by_criteria: Query: {query}, Values: {tuple(params)}")
        rows = self.db_manager.fetch_all(query, tuple(params), conn=conn)
        return [self._entity_from_row(dict(row)) for row in rows]

    def count_by_criteria(self, criteria: Dict[str, Any], conn: Optional[sqlite3.Connection] = None) -> int:
        where, params = self._build_where(criteria)
        row = self.db_manager.fetch_one(f"SELECT COUNT(*) AS cnt FROM {self._table_name}{where}",
                                        tuple(params), conn=conn)
        return int(row["cnt"]) if row else 0

    @staticmethod
    def _to_db_value(value: Any) -> Any:
        if isinstance(value, Decimal):
            return str(value) # stored as TEXT, never through float
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, bool):
            return 1 if value else 0
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return value

    def _entity_to_dict_for_db(self, entity: T) -> Dict[str, Any]:
        return {col: self._to_db_value(getattr(entity, col)) for col in self._db_columns}

    def add(self, entity: T, conn: Optional[sqlite3.Connection] = None) -> T:
        logger.debug(f"BaseRepository.add: Type {type(entity).__name__} to table '{self._table_name}'.")

        fields_to_insert = self._entity_to_dict_for_db(entity)
        fields_to_insert.pop('id', None)

        columns = ', '.join(fields_to_insert.keys())
        placeholders = ', '.join(['?'] * len(fields_to_insert))
        values_tuple = tuple(fields_to_insert.values())
        query = f"INSERT INTO {self._table_name} ({columns}) VALUES ({placeholders})"

        try:
            cursor = self.db_manager.execute_query(query, values_tuple, conn=conn)
        except sqlite3.Error as e:
            logger.error(f"Error during INSERT into {self._table_name}: {e}", exc_info=True)
            raise
        entity.id = cursor.lastrowid
        logger.debug(f"BaseRepository.add: Entity ID set to {entity.id} after insert.")
        return entity

    def update(self, entity: T, conn: Optional[sqlite3.Connection] = None) -> T:
        if entity.id is None:
            raise ValueError(f"Entity of type {type(entity).__name__} must have an ID to be updated.")

        fields_to_update = self._entity_to_dict_for_db(entity)
        fields_to_update.pop('id', None)

        set_clause = ', '.join([f"{key} = ?" for key in fields_to_update.keys()])
        values_tuple = tuple(fields_to_update.values()) + (entity.id,)
        query = f"UPDATE {self._table_name} SET {set_clause} WHERE id = ?"
        logger.debug(f"BaseRepository.update: Query: {query}")

        try:
            self.db_manager.execute_query(query, values_tuple, conn=conn)
        except sqlite3.Error as e:
            logger.error(f"Error during UPDATE for entity ID {entity.id} in table {self._table_name}: {e}", exc_info=True)
            raise
        logger.debug(f"BaseRepository.update: Entity ID {entity.id} in table {self._table_name} updated.")
        return entity

    def _entity_from_row(self, row: Dict[str, Any]) -> T:
        """Builds the entity from a row dict, converting TEXT columns back to Decimal/date/Enum."""
        entity_data = {}

        for f in fields(self.model_type):
            if not f.init:
                continue

            field_name = f.name
            field_type = f.type
            value_from_db = row.get(field_name)

            if value_from_db is None:
                if f.default is MISSING and f.default_factory is MISSING:
                    is_optional = getattr(field_type, '__origin__', None) is Union and type(None) in getattr(field_type, '__args__', [])
                    if not is_optional:
                        raise ValueError(
                            f"Database integrity error: NULL value found for required field '{field_name}' "
                            f"in table '{self._table_name}' for row: {row}"
                        )
                entity_data[field_name] = None
                continue

            actual_type = field_type
            if getattr(field_type, '__origin__', None) is Union:
                possible_types = [arg for arg in getattr(field_type, '__args__', []) if arg is not type(None)]
                if possible_types:
                    actual_type = possible_types[0]

            try:
                if isinstance(actual_type, type) and issubclass(actual_type, Enum):
                    entity_data[field_name] = actual_type(value_from_db)
                elif actual_type == Decimal:
                    entity_data[field_name] = Decimal(str(value_from_db))
                elif actual_type == datetime and isinstance(value_from_db, str):
                    entity_data[field_name] = datetime.fromisoformat(value_from_db)
                elif actual_type == date and isinstance(value_from_db, str):
                    entity_data[field_name] = date.fromisoformat(value_from_db.split("T")[0].split(" ")[0])
                elif actual_type == bool:
                    entity_data[field_name] = bool(value_from_db)
                else:
                    entity_data[field_name] = value_from_db
            except (ValueError, TypeError, ArithmeticError) as e:
                logger.error(f"Type conversion failed for field '{field_name}' with value '{value_from_db}' in table '{self._table_name}': {e}")
                raise ValueError(f"Corrupt value for {self._table_name}.{field_name}: {value_from_db!r}") from e

        try:
            return self.model_type(**entity_data)
        except TypeError as e:
            logger.error(f"Failed to instantiate {self.model_type.__name__}. Error: {e}. Data passed: {entity_data}")
            raise
