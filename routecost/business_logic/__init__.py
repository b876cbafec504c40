# routecost/business_logic/__init__.py
# Must not import data_access: repositories import business_logic.entities.
