# routecost/business_logic/cost_parameter_manager.py

import sqlite3
from typing import Optional, List, Any, Union
from datetime import date

from routecost.business_logic.entities.cost_parameter_entity import CostParameterEntity
from routecost.business_logic.entities.cost_rate_snapshot import CostRateSnapshot
from routecost.data_access.database_manager import DatabaseManager
from routecost.data_access.cost_parameters_repository import CostParametersRepository
from routecost.config import PLAUSIBLE_PARAMETER_RANGES
from routecost.constants import CostParameterType, REQUIRED_PARAMETER_TYPES
from routecost.exceptions import (
    ValidationError, MissingCostParameter, ConfigurationError, ImplausibleCostParameter,
)
from routecost.utils.money import to_decimal

import logging
logger = logging.getLogger(__name__)


class CostParameterManager:
    """
    Time-bounded scalar rates. Each row covers [effective_date, end_date); rows of the
    same type never overlap, so a type has at most one value on any given date.
    """

    def __init__(self, db_manager: DatabaseManager, cost_parameter_repository: CostParametersRepository):
        if db_manager is None: raise ValueError("db_manager cannot be None")
        if cost_parameter_repository is None: raise ValueError("cost_parameter_repository cannot be None")
        self.db_manager = db_manager
        self.param_repo = cost_parameter_repository

    @staticmethod
    def _coerce_type(parameter_type: Union[CostParameterType, str]) -> CostParameterType:
        if isinstance(parameter_type, CostParameterType):
            return parameter_type
        try:
            return CostParameterType(str(parameter_type).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown cost parameter type '{parameter_type}'.")

    @staticmethod
    def _check_plausible(parameter_type: CostParameterType, value) -> None:
        low, high = PLAUSIBLE_PARAMETER_RANGES[parameter_type]
        if not (low <= value <= high):
            raise ImplausibleCostParameter(parameter_type, value, low, high)

    def _check_no_overlap(self, parameter_type: CostParameterType, effective_date: date,
                          end_date: Optional[date], conn: sqlite3.Connection) -> None:
        for existing in self.param_repo.get_by_type(parameter_type, conn=conn):
            if existing.overlaps(effective_date, end_date):
                raise ValidationError(
                    f"'{parameter_type.value}' parameter [{effective_date}, {end_date or 'open'}) overlaps "
                    f"existing ID {existing.id} [{existing.effective_date}, {existing.end_date or 'open'})."
                )

    def add_parameter(self, parameter_type: Union[CostParameterType, str], value: Any, effective_date: date,
                      end_date: Optional[date] = None, parameter_name: Optional[str] = None,
                      unit: Optional[str] = None, description: Optional[str] = None) -> CostParameterEntity:
        p_type = self._coerce_type(parameter_type)
        logger.info(f"Adding '{p_type.value}' cost parameter effective {effective_date} (end {end_date}).")
        decimal_value = to_decimal(value, "value")
        if end_date is not None and end_date <= effective_date:
            raise ValidationError(f"End date {end_date} must be after effective date {effective_date}.")
        try:
            self._check_plausible(p_type, decimal_value)
        except ImplausibleCostParameter as e:
            raise ValidationError(str(e)) from e

        entity = CostParameterEntity(parameter_type=p_type, parameter_name=parameter_name or p_type.value,
                                     value=decimal_value, effective_date=effective_date, end_date=end_date,
                                     unit=unit, description=description)
        with self.db_manager.transaction() as conn:
            self._check_no_overlap(p_type, effective_date, end_date, conn)
            self.param_repo.add(entity, conn=conn)
        logger.info(f"Cost parameter ID {entity.id} ('{p_type.value}' = {decimal_value}) added.")
        return entity

    def update_cost_parameter(self, parameter_type: Union[CostParameterType, str], value: Any,
                              effective_date: date, parameter_name: Optional[str] = None,
                              unit: Optional[str] = None, description: Optional[str] = None) -> CostParameterEntity:
        """
        Supersedes the open-ended rate of this type: the current row is closed at
        effective_date and a new open-ended row starts there.
        """
        p_type = self._coerce_type(parameter_type)
        logger.info(f"Superseding '{p_type.value}' cost parameter from {effective_date}.")
        decimal_value = to_decimal(value, "value")
        try:
            self._check_plausible(p_type, decimal_value)
        except ImplausibleCostParameter as e:
            raise ValidationError(str(e)) from e

        entity = CostParameterEntity(parameter_type=p_type, parameter_name=parameter_name or p_type.value,
                                     value=decimal_value, effective_date=effective_date,
                                     unit=unit, description=description)
        with self.db_manager.transaction() as conn:
            self.param_repo.close_open_ended(p_type, effective_date, conn=conn)
            self._check_no_overlap(p_type, effective_date, None, conn)
            self.param_repo.add(entity, conn=conn)
        logger.info(f"Cost parameter ID {entity.id} ('{p_type.value}' = {decimal_value}) now effective from {effective_date}.")
        return entity

    def get_parameter_as_of(self, parameter_type: Union[CostParameterType, str], as_of: date,
                            conn: Optional[sqlite3.Connection] = None) -> CostParameterEntity:
        p_type = self._coerce_type(parameter_type)
        matches = self.param_repo.get_effective(p_type, as_of, conn=conn)
        if not matches:
            raise MissingCostParameter(p_type, as_of)
        if len(matches) > 1:
            ids = [m.id for m in matches]
            logger.error(f"Overlapping '{p_type.value}' cost parameters on {as_of}: IDs {ids}.")
            raise ConfigurationError(f"{len(matches)} '{p_type.value}' cost parameters are effective on {as_of} (IDs {ids}).")
        return matches[0]

    def snapshot(self, as_of: date, conn: Optional[sqlite3.Connection] = None) -> CostRateSnapshot:
        """All rates for one date. Required ones must exist; every resolved one must be plausible."""
        resolved = {}
        for p_type in REQUIRED_PARAMETER_TYPES:
            resolved[p_type] = self.get_parameter_as_of(p_type, as_of, conn=conn).value
        try:
            resolved[CostParameterType.LAND] = self.get_parameter_as_of(CostParameterType.LAND, as_of, conn=conn).value
        except MissingCostParameter:
            resolved[CostParameterType.LAND] = None

        for p_type, value in resolved.items():
            if value is None:
                continue
            try:
                self._check_plausible(p_type, value)
            except ImplausibleCostParameter as e:
                logger.error(f"Rejecting rate snapshot for {as_of}: {e}")
                raise

        return CostRateSnapshot(
            as_of=as_of,
            labor_rate=resolved[CostParameterType.LABOR],
            electricity_rate=resolved[CostParameterType.ELECTRICITY],
            overhead_rate=resolved[CostParameterType.OVERHEAD],
            land_rate=resolved[CostParameterType.LAND],
        )

    def list_parameters(self, parameter_type: Optional[Union[CostParameterType, str]] = None) -> List[CostParameterEntity]:
        if parameter_type is None:
            return self.param_repo.list_all()
        return self.param_repo.get_by_type(self._coerce_type(parameter_type))
