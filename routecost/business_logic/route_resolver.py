# routecost/business_logic/route_resolver.py

import sqlite3
from typing import Optional, Tuple

from routecost.business_logic.entities.process_route_entity import ProductProcessRouteEntity
from routecost.business_logic.catalog_manager import CatalogManager
from routecost.constants import RouteSource
from routecost.exceptions import NoRouteAvailable

import logging
logger = logging.getLogger(__name__)


class RouteResolver:
    """
    Picks a route for a product when the caller did not name one. First match wins:

    1. the active default route of the category
    2. the active route whose material_type AND size_range equal the product's
       (only when both are given; no partial scoring)
    3. the first active route of the category in catalog order

    Ties inside a rule go to the lowest route id.
    """

    def __init__(self, catalog_manager: CatalogManager):
        if catalog_manager is None: raise ValueError("catalog_manager cannot be None")
        self.catalog_manager = catalog_manager

    def resolve(self, product_category: str, material_type: Optional[str] = None,
                size_range: Optional[str] = None,
                conn: Optional[sqlite3.Connection] = None) -> ProductProcessRouteEntity:
        route, _ = self.resolve_with_source(product_category, material_type, size_range, conn=conn)
        return route

    def resolve_with_source(self, product_category: str, material_type: Optional[str] = None,
                            size_range: Optional[str] = None,
                            conn: Optional[sqlite3.Connection] = None) -> Tuple[ProductProcessRouteEntity, RouteSource]:
        candidates = self.catalog_manager.list_active_routes_for_category(product_category, conn=conn)
        if not candidates:
            logger.warning(f"No active route for category '{product_category}'.")
            raise NoRouteAvailable(product_category)

        chosen, source = None, None
        for route in candidates:
            if route.is_default:
                chosen, source = route, RouteSource.DEFAULT
                break

        if chosen is None and material_type and size_range:
            for route in candidates:
                if route.material_type == material_type and route.size_range == size_range:
                    chosen, source = route, RouteSource.ATTRIBUTE_MATCH
                    break

        if chosen is None:
            chosen, source = candidates[0], RouteSource.FIRST_AVAILABLE

        logger.info(f"Resolved route ID {chosen.id} ('{chosen.route_name}') for category '{product_category}' via {source.value}.")
        return self.catalog_manager.get_route_with_details(chosen.id, conn=conn), source
