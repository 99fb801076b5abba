from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class ConflictError(BaseAppException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class InvalidStateError(BaseAppException):
    def __init__(self, detail: str = "Operation is not allowed in the current state"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class AlreadyCancelledError(InvalidStateError):
    def __init__(self, detail: str = "Only approved documents can be cancelled"):
        super().__init__(detail=detail)

class InsufficientStockError(BaseAppException):
    def __init__(self, detail: str = "Insufficient stock available"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class IncompatibleUnitsError(BaseAppException):
    def __init__(self, detail: str = "Units of different types cannot be converted"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class UnitNotFoundError(NotFoundError):
    def __init__(self, detail: str = "Unit not found"):
        super().__init__(detail=detail)
