# routecost/config.py

import os
import logging
from decimal import Decimal

from routecost.constants import CostParameterType

# --- Database Configuration ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__))) # routecost/ -> project root
DATA_DIR = os.environ.get("ROUTECOST_DATA_DIR", os.path.join(BASE_DIR, "data"))
DB_NAME = "process_costing.db"
DATABASE_PATH = os.path.join(DATA_DIR, DB_NAME)

# --- Logging Configuration ---
LOGS_DIR = os.environ.get("ROUTECOST_LOGS_DIR", os.path.join(BASE_DIR, "logs"))
LOG_FILE_NAME = "routecost.log"
LOG_FILE_PATH = os.path.join(LOGS_DIR, LOG_FILE_NAME)

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'level': logging.DEBUG,
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': LOG_FILE_PATH,
            'maxBytes': 1024*1024*5,  # 5 MB
            'backupCount': 5,
            'level': logging.INFO,
            'encoding': 'utf-8',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': logging.DEBUG,
    },
}

# --- Costing Settings ---
DEFAULT_CURRENCY = "USD"

# 250 working days x 8 hours; denominator for equipment depreciation and maintenance per hour
STANDARD_ANNUAL_HOURS = Decimal("2000")

# Yield applied to custom route lines that do not carry one
CUSTOM_ROUTE_DEFAULT_YIELD = Decimal("0.98")

MONEY_QUANTUM = Decimal("0.01")
HOURS_QUANTUM = Decimal("0.0001")
TIME_QUANTUM = Decimal("0.01")         # setup minutes / cycle seconds on detail rows
UNIT_COST_QUANTUM = Decimal("0.00000001")  # coarsest; round_unit_cost narrows it by batch size

CALCULATION_NUMBER_PREFIX = "CALC"

# Closed ranges a resolved rate must fall in; anything outside is treated as bad data
PLAUSIBLE_PARAMETER_RANGES = {
    CostParameterType.LABOR: (Decimal("0.01"), Decimal("10000")),        # per hour
    CostParameterType.ELECTRICITY: (Decimal("0.0001"), Decimal("100")),  # per kWh
    CostParameterType.LAND: (Decimal("0"), Decimal("1000000")),          # per area unit
    CostParameterType.OVERHEAD: (Decimal("0"), Decimal("5")),            # fraction of material + process
}
