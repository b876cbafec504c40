from __future__ import annotations

import copy
import logging
from datetime import date
from decimal import Decimal

import pytest

from routecost import CostEngine, create_engine, setup_logging
from routecost.config import LOGGING_CONFIG
from routecost.constants import CostParameterType


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_setup_logging_creates_log_directory(tmp_path, restore_root_logger):
    config = copy.deepcopy(LOGGING_CONFIG)
    log_file = tmp_path / "logs" / "deep" / "routecost.log"
    config["handlers"]["file"]["filename"] = str(log_file)

    setup_logging(config)
    logging.getLogger("routecost.test").info("engine started")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_file.exists()
    assert "engine started" in log_file.read_text(encoding="utf-8")


def test_create_engine_builds_schema(tmp_path):
    engine = create_engine(str(tmp_path / "db" / "costing.db"))
    assert isinstance(engine, CostEngine)
    assert "cost_calculations" in engine.db_manager.list_tables()


def test_catalog_listings(engine, catalog):
    assert [r.route_name for r in engine.list_process_routes("bolt")] == ["Bolt - cold formed", "Bolt - heat treated"]
    assert {s.code for s in engine.list_process_steps()} == {"CF", "HT", "QC"}
    assert [e.code for e in engine.list_equipment(catalog.heat.id)] == ["FUR-01"]


def test_inactive_catalog_entries_drop_out_of_listings(engine, catalog):
    engine.catalog_manager.set_route_active(catalog.screw_m6.id, False)
    engine.catalog_manager.set_equipment_active(catalog.furnace.id, False)
    assert [r.route_name for r in engine.list_process_routes("screw")] == ["Screw - generic"]
    assert [e.code for e in engine.list_equipment()] == ["HDR-01"]


def test_cost_parameter_facade(engine, rates):
    engine.update_cost_parameter("overhead", "0.12", date(2024, 4, 1), parameter_name="Plant overhead")
    overhead = engine.list_cost_parameters(CostParameterType.OVERHEAD)
    assert [p.value for p in overhead] == [Decimal("0.12"), Decimal("0.10")]
    assert overhead[1].end_date == date(2024, 4, 1)
    assert len(engine.list_cost_parameters()) == 4
