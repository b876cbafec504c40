# routecost/__init__.py
"""Process-route cost calculation engine for made-to-order fasteners."""

__version__ = "0.1.0"

from routecost.app import CostEngine, create_engine, setup_logging
