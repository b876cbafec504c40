# routecost/exceptions.py
"""
Error taxonomy of the cost engine.

ValidationError   -> bad input, rejected synchronously
NotFoundError     -> a route, calculation, catalog record or rate is missing
ConflictError     -> status precondition failed or self-approval
ConfigurationError -> catalog/parameter data is inconsistent (fatal, logged)
"""


class CostEngineError(Exception):
    """Base class for every error raised by the engine."""


# --- Validation ---

class ValidationError(CostEngineError, ValueError):
    pass


class InvalidQuantity(ValidationError):
    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__(f"Quantity must be a positive integer, got {quantity!r}.")


# --- Not found ---

class NotFoundError(CostEngineError, LookupError):
    def __init__(self, message: str, key=None):
        self.key = key
        super().__init__(message)


class NoRouteAvailable(NotFoundError):
    def __init__(self, category: str):
        self.category = category
        super().__init__(f"No active process route for product category '{category}'.", key=category)


class MissingCostParameter(NotFoundError):
    def __init__(self, parameter_type, as_of):
        self.parameter_type = parameter_type
        self.as_of = as_of
        type_value = getattr(parameter_type, "value", parameter_type)
        super().__init__(f"No '{type_value}' cost parameter is effective on {as_of}.", key=type_value)


class CalculationNotFound(NotFoundError):
    def __init__(self, calculation_id):
        super().__init__(f"Cost calculation {calculation_id} not found.", key=calculation_id)


class CatalogRecordNotFound(NotFoundError):
    def __init__(self, record_type: str, record_id):
        self.record_type = record_type
        super().__init__(f"{record_type} {record_id} not found in catalog.", key=record_id)


# --- Conflict ---

class ConflictError(CostEngineError):
    pass


class StatusConflict(ConflictError):
    def __init__(self, calculation_id, expected_status, actual_status, action: str):
        self.calculation_id = calculation_id
        self.expected_status = expected_status
        self.actual_status = actual_status
        self.action = action
        super().__init__(
            f"Cannot {action} calculation {calculation_id}: expected status "
            f"'{getattr(expected_status, 'value', expected_status)}', "
            f"found '{getattr(actual_status, 'value', actual_status)}'."
        )


class SelfApprovalNotAllowed(ConflictError):
    def __init__(self, calculation_id, user_id):
        self.calculation_id = calculation_id
        self.user_id = user_id
        super().__init__(f"User '{user_id}' requested calculation {calculation_id} and cannot approve it.")


# --- Configuration ---

class ConfigurationError(CostEngineError):
    pass


class InactiveRouteReference(ConfigurationError):
    def __init__(self, record_type: str, record_id, sequence=None):
        self.record_type = record_type
        self.record_id = record_id
        self.sequence = sequence
        where = f" (route sequence {sequence})" if sequence is not None else ""
        super().__init__(f"Route references inactive {record_type} {record_id}{where}.")


class InvalidRouteDefinition(ConfigurationError):
    pass


class ImplausibleCostParameter(ConfigurationError):
    def __init__(self, parameter_type, value, low, high):
        self.parameter_type = parameter_type
        self.value = value
        type_value = getattr(parameter_type, "value", parameter_type)
        super().__init__(f"Cost parameter '{type_value}' = {value} is outside the plausible range [{low}, {high}].")
