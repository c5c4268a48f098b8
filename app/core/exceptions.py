from fastapi import HTTPException, status

class BaseAppException(HTTPException):
    retryable: bool = False

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationError(BaseAppException):
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)

class InvalidQuantityError(ValidationError):
    def __init__(self, detail: str = "Quantity must be greater than zero"):
        super().__init__(detail=detail)

class NotFoundError(BaseAppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class InsufficientStockError(BaseAppException):
    def __init__(self, detail: str = "Insufficient stock available"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class ExceedsStockError(InsufficientStockError):
    def __init__(self, detail: str = "Adjustment exceeds current stock"):
        super().__init__(detail=detail)

class LedgerTimeoutError(BaseAppException):
    retryable = True

    def __init__(self, detail: str = "Stock ledger is busy, please retry"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
