# routecost/data_access/database_manager.py

import os
import sqlite3
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from routecost.config import DATABASE_PATH
from routecost.constants import CostParameterType, CalculationStatus, RouteSource

logger = logging.getLogger(__name__)


def _in_clause(enum_type) -> str:
    return ', '.join(f"'{member.value}'" for member in enum_type)


class DatabaseManager:
    """
    Opens a fresh sqlite3 connection per operation, so concurrent callers never
    share a connection. Connections run in autocommit mode; multi-statement
    writes go through transaction(), consistent reads through snapshot().
    """

    def __init__(self, db_path=DATABASE_PATH, timeout: float = 30.0):
        self.db_path = db_path
        self.timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)
            conn.row_factory = sqlite3.Row # Access columns by name
            conn.execute("PRAGMA foreign_keys = ON;") # Enforce foreign key constraints
            logger.debug(f"Database connection established to {self.db_path}")
            return conn
        except sqlite3.Error as e:
            logger.error(f"Error connecting to database {self.db_path}: {e}")
            raise

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()
            logger.debug("Database connection closed.")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction; BEGIN IMMEDIATE takes the write lock up front."""
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                logger.warning("Transaction rolled back.")
                raise
            conn.execute("COMMIT")

    @contextmanager
    def snapshot(self) -> Iterator[sqlite3.Connection]:
        """Read transaction: every query on the yielded connection sees the same database state."""
        with self.connection() as conn:
            conn.execute("BEGIN DEFERRED")
            try:
                yield conn
            finally:
                conn.execute("COMMIT")

    def execute_query(self, query, params=None, conn: Optional[sqlite3.Connection] = None):
        try:
            if conn is not None:
                return conn.execute(query, params or ())
            with self.connection() as own_conn:
                return own_conn.execute(query, params or ())
        except sqlite3.Error as e:
            logger.error(f"Query execution failed: {query} with params {params} - {e}")
            raise

    def fetch_one(self, query, params=None, conn: Optional[sqlite3.Connection] = None):
        try:
            if conn is not None:
                return conn.execute(query, params or ()).fetchone()
            with self.connection() as own_conn:
                return own_conn.execute(query, params or ()).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Fetch one failed: {query} with params {params} - {e}")
            raise

    def fetch_all(self, query, params=None, conn: Optional[sqlite3.Connection] = None):
        try:
            if conn is not None:
                return conn.execute(query, params or ()).fetchall()
            with self.connection() as own_conn:
                return own_conn.execute(query, params or ()).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Fetch all failed: {query} with params {params} - {e}")
            raise

    def create_tables(self):
        # Order matters: referenced tables first.
        queries = [
            """
            CREATE TABLE IF NOT EXISTS process_categories (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                name_en TEXT,
                description TEXT,
                sort_order INTEGER NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS equipment (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                name_en TEXT,
                process_category_id INTEGER NOT NULL,
                specs TEXT,
                capacity_per_hour TEXT NOT NULL DEFAULT '0', -- Decimal as text
                power_consumption TEXT NOT NULL DEFAULT '0', -- kW
                depreciation_years INTEGER NOT NULL DEFAULT 10 CHECK(depreciation_years > 0),
                purchase_cost TEXT NOT NULL DEFAULT '0',
                maintenance_cost_per_year TEXT NOT NULL DEFAULT '0',
                location TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                FOREIGN KEY (process_category_id) REFERENCES process_categories(id) ON DELETE RESTRICT
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS process_steps (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                code TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                name_en TEXT,
                process_category_id INTEGER NOT NULL,
                default_equipment_id INTEGER,
                setup_time_minutes TEXT NOT NULL DEFAULT '0',
                cycle_time_seconds TEXT NOT NULL DEFAULT '0',
                labor_required INTEGER NOT NULL DEFAULT 1 CHECK(labor_required >= 0),
                description TEXT,
                sort_order INTEGER NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1,
                FOREIGN KEY (process_category_id) REFERENCES process_categories(id) ON DELETE RESTRICT,
                FOREIGN KEY (default_equipment_id) REFERENCES equipment(id) ON DELETE SET NULL
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS product_process_routes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                product_category TEXT NOT NULL,
                material_type TEXT,
                size_range TEXT,
                route_name TEXT NOT NULL,
                is_default INTEGER NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS process_route_details (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                route_id INTEGER NOT NULL,
                sequence INTEGER NOT NULL,
                process_step_id INTEGER NOT NULL,
                equipment_id INTEGER,
                setup_time_override TEXT,
                cycle_time_override TEXT,
                yield_rate TEXT NOT NULL DEFAULT '1',
                other_cost TEXT NOT NULL DEFAULT '0',
                notes TEXT,
                UNIQUE (route_id, sequence),
                FOREIGN KEY (route_id) REFERENCES product_process_routes(id) ON DELETE CASCADE,
                FOREIGN KEY (process_step_id) REFERENCES process_steps(id) ON DELETE RESTRICT,
                FOREIGN KEY (equipment_id) REFERENCES equipment(id) ON DELETE RESTRICT
            );
            """,
            """
            CREATE TABLE IF NOT EXISTS cost_parameters (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                parameter_type TEXT NOT NULL CHECK(parameter_type IN ({types})),
                parameter_name TEXT NOT NULL,
                value TEXT NOT NULL,
                unit TEXT,
                effective_date TEXT NOT NULL, -- ISO Date, inclusive
                end_date TEXT,                -- ISO Date, exclusive; NULL = open-ended
                description TEXT,
                CHECK (end_date IS NULL OR end_date > effective_date)
            );
            """.format(types=_in_clause(CostParameterType)),
            """
            CREATE TABLE IF NOT EXISTS cost_calculations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                calculation_no TEXT NOT NULL UNIQUE,
                inquiry_id TEXT,
                product_name TEXT NOT NULL,
                product_category TEXT NOT NULL,
                material_type TEXT,
                size_range TEXT,
                quantity INTEGER NOT NULL CHECK(quantity > 0),
                material_cost TEXT NOT NULL,
                process_cost TEXT NOT NULL,
                overhead_cost TEXT NOT NULL,
                total_cost TEXT NOT NULL,
                unit_cost TEXT NOT NULL,
                margin_percentage TEXT,
                selling_price TEXT NOT NULL,
                currency TEXT NOT NULL,
                route_id INTEGER,
                route_name TEXT,
                route_source TEXT CHECK(route_source IN ({sources})),
                parameters_as_of TEXT NOT NULL,
                calculated_by TEXT NOT NULL,
                calculated_at TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT '{draft}' CHECK(status IN ({statuses})),
                submitted_at TEXT,
                approved_by TEXT,
                approved_at TEXT,
                rejected_by TEXT,
                rejected_at TEXT,
                rejection_reason TEXT,
                previous_calculation_id INTEGER,
                version INTEGER NOT NULL DEFAULT 1,
                FOREIGN KEY (route_id) REFERENCES product_process_routes(id) ON DELETE RESTRICT,
                FOREIGN KEY (previous_calculation_id) REFERENCES cost_calculations(id) ON DELETE RESTRICT
            );
            """.format(
                sources=_in_clause(RouteSource),
                statuses=_in_clause(CalculationStatus),
                draft=CalculationStatus.DRAFT.value,
            ),
            """
            CREATE TABLE IF NOT EXISTS cost_calculation_details (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                calculation_id INTEGER NOT NULL,
                sequence INTEGER NOT NULL,
                process_step_id INTEGER NOT NULL,
                process_step_name TEXT,
                equipment_id INTEGER,
                equipment_name TEXT,
                setup_time TEXT NOT NULL,
                cycle_time TEXT NOT NULL,
                total_time_hours TEXT NOT NULL,
                yield_rate TEXT NOT NULL DEFAULT '1',
                labor_cost TEXT NOT NULL,
                equipment_cost TEXT NOT NULL,
                electricity_cost TEXT NOT NULL,
                other_cost TEXT NOT NULL,
                yield_loss_cost TEXT NOT NULL,
                subtotal_cost TEXT NOT NULL,
                notes TEXT,
                UNIQUE (calculation_id, sequence),
                FOREIGN KEY (calculation_id) REFERENCES cost_calculations(id) ON DELETE RESTRICT
            );
            """,
            "CREATE INDEX IF NOT EXISTS idx_routes_category ON product_process_routes (product_category, is_active);",
            "CREATE INDEX IF NOT EXISTS idx_cost_parameters_type ON cost_parameters (parameter_type, effective_date);",
            "CREATE INDEX IF NOT EXISTS idx_calculations_status ON cost_calculations (status);",
            "CREATE INDEX IF NOT EXISTS idx_calculations_inquiry ON cost_calculations (inquiry_id);",
        ]

        db_dir = os.path.dirname(os.path.abspath(self.db_path))
        if not os.path.exists(db_dir):
            os.makedirs(db_dir)

        with self.connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL;") # readers do not block the single writer

        logger.info(f"Attempting to execute {len(queries)} schema SQL statement(s) on {self.db_path}.")
        with self.transaction() as conn:
            for query_index, query_sql in enumerate(queries):
                try:
                    conn.execute(query_sql)
                except sqlite3.Error as e_exec:
                    logger.error(f"SQLite error in schema statement #{query_index}: {e_exec}\nProblematic SQL (first 200 chars):\n{query_sql.strip()[:200]}...")
                    raise
        logger.info("Database tables checked/created successfully.")

    def list_tables(self):
        rows = self.fetch_all("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name;")
        return [row["name"] for row in rows]
