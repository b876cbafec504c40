# routecost/constants.py

from enum import Enum

# General
CALCULATION_DATE_FORMAT = "%Y%m%d"


class CostParameterType(Enum):
    LABOR = "labor"               # cost per labor hour
    ELECTRICITY = "electricity"   # cost per kWh
    LAND = "land"                 # cost per area unit
    OVERHEAD = "overhead"         # fraction applied to material + process cost


# Rates a calculation cannot run without
REQUIRED_PARAMETER_TYPES = (
    CostParameterType.LABOR,
    CostParameterType.ELECTRICITY,
    CostParameterType.OVERHEAD,
)


class CalculationStatus(Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


# from-status -> statuses it may move to
ALLOWED_STATUS_TRANSITIONS = {
    CalculationStatus.DRAFT: (CalculationStatus.SUBMITTED,),
    CalculationStatus.SUBMITTED: (CalculationStatus.APPROVED, CalculationStatus.REJECTED),
    CalculationStatus.APPROVED: (),
    CalculationStatus.REJECTED: (),
}


class RouteSource(Enum):
    EXPLICIT = "explicit"             # caller named the route
    DEFAULT = "default"               # resolver: category default
    ATTRIBUTE_MATCH = "attribute_match"  # resolver: material + size exact match
    FIRST_AVAILABLE = "first_available"  # resolver: first active in catalog order
    CUSTOM = "custom"                 # caller supplied the steps inline
