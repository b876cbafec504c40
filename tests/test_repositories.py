from __future__ import annotations

import sqlite3
from datetime import date
from decimal import Decimal

import pytest

from routecost.business_logic.entities import CostParameterEntity, ProcessRouteDetailEntity
from routecost.constants import CalculationStatus, CostParameterType
from routecost.data_access.database_manager import DatabaseManager


def test_create_tables_is_idempotent(tmp_path):
    db = DatabaseManager(str(tmp_path / "nested" / "costing.db"))
    db.create_tables()
    db.create_tables()
    assert db.list_tables() == [
        "cost_calculation_details", "cost_calculations", "cost_parameters", "equipment",
        "process_categories", "process_route_details", "process_steps", "product_process_routes",
    ]


def test_money_is_stored_as_text_and_read_back_exactly(engine):
    saved = engine.cost_parameters_repo.add(CostParameterEntity(
        parameter_type=CostParameterType.ELECTRICITY, parameter_name="Grid power",
        value=Decimal("0.1234567"), effective_date=date(2024, 1, 1),
    ))
    with engine.db_manager.connection() as conn:
        row = conn.execute("SELECT typeof(value) AS t, value FROM cost_parameters WHERE id = ?",
                           (saved.id,)).fetchone()
    assert row["t"] == "text"
    assert row["value"] == "0.1234567"

    loaded = engine.cost_parameters_repo.get_by_id(saved.id)
    assert loaded.value == Decimal("0.1234567")
    assert loaded.parameter_type is CostParameterType.ELECTRICITY
    assert loaded.effective_date == date(2024, 1, 1)
    assert loaded.end_date is None


def test_none_criterion_matches_null(engine):
    repo = engine.cost_parameters_repo
    repo.add(CostParameterEntity(parameter_type=CostParameterType.LABOR, parameter_name="Labor",
                                 value=Decimal("14"), effective_date=date(2023, 1, 1), end_date=date(2024, 1, 1)))
    open_ended = repo.add(CostParameterEntity(parameter_type=CostParameterType.LABOR, parameter_name="Labor",
                                              value=Decimal("15"), effective_date=date(2024, 1, 1)))
    found = repo.find_by_criteria({"parameter_type": CostParameterType.LABOR, "end_date": None})
    assert [p.id for p in found] == [open_ended.id]
    assert repo.count_by_criteria({"effective_date": ("<", date(2024, 1, 1))}) == 1


def test_effective_lookup_is_half_open(engine):
    repo = engine.cost_parameters_repo
    repo.add(CostParameterEntity(parameter_type=CostParameterType.OVERHEAD, parameter_name="Overhead",
                                 value=Decimal("0.1"), effective_date=date(2024, 1, 1), end_date=date(2024, 2, 1)))
    assert len(repo.get_effective(CostParameterType.OVERHEAD, date(2024, 1, 31))) == 1
    assert repo.get_effective(CostParameterType.OVERHEAD, date(2024, 2, 1)) == []


def test_conditional_status_update_misses_when_status_moved(priced, make_request):
    calc = priced.calculate(make_request())
    repo = priced.calculations_repo
    assert repo.update_status_if(calc.id, CalculationStatus.SUBMITTED, CalculationStatus.APPROVED) == 0
    assert repo.get_by_id(calc.id).version == 1
    assert repo.update_status_if(calc.id, CalculationStatus.DRAFT, CalculationStatus.SUBMITTED) == 1
    assert repo.get_by_id(calc.id).status is CalculationStatus.SUBMITTED


def test_route_sequence_is_unique_per_route(engine, catalog):
    duplicate = ProcessRouteDetailEntity(route_id=catalog.bolt_default.id, sequence=1,
                                         process_step_id=catalog.heat_treat.id)
    with pytest.raises(sqlite3.IntegrityError):
        engine.route_details_repo.add(duplicate)


def test_failed_transaction_rolls_back(engine, catalog):
    with pytest.raises(RuntimeError):
        with engine.db_manager.transaction() as conn:
            route = engine.routes_repo.get_by_id(catalog.screw_m6.id, conn=conn)
            route.route_name = "Renamed"
            engine.routes_repo.update(route, conn=conn)
            raise RuntimeError("abort")
    assert engine.routes_repo.get_by_id(catalog.screw_m6.id).route_name == "Screw - carbon M6"


def test_calculation_number_prefix_count(priced, make_request):
    priced.calculate(make_request())
    priced.calculate(make_request())
    assert priced.calculations_repo.count_with_number_prefix("CALC-20240315-") == 2
    assert priced.calculations_repo.count_with_number_prefix("CALC-20240316-") == 0


def test_where_clause_is_shared_by_find_and_count(engine):
    repo = engine.cost_parameters_repo
    where, params = repo._build_where({
        "parameter_type": CostParameterType.LABOR,
        "end_date": None,
        "effective_date": ("<=", date(2024, 3, 1)),
    })
    assert where == " WHERE parameter_type = ? AND end_date IS NULL AND effective_date <= ?"
    assert params == ["labor", "2024-03-01"]
    assert repo._build_where({}) == ("", [])

    repo.add(CostParameterEntity(parameter_type=CostParameterType.LABOR, parameter_name="Labor",
                                 value=Decimal("15"), effective_date=date(2024, 1, 1)))
    criteria = {"parameter_type": CostParameterType.LABOR, "end_date": None}
    assert repo.count_by_criteria(criteria) == len(repo.find_by_criteria(criteria)) == 1
    assert repo.count_by_criteria({}) == 1
