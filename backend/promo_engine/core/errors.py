class DataAccessError(Exception):
    """
    Raised when the profile/event repository fails to read or write.
    Kept distinct from "no recommendation for this product", which is never an error.
    """

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        message = f"Data access failed during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
