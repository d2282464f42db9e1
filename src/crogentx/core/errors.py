from typing import List, Optional


class CrogentxError(Exception):
    pass


class DataSourceError(CrogentxError):
    pass


class ValidationError(CrogentxError):
    def __init__(self, message: str, missing: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class NotFoundError(CrogentxError):
    pass


class ApiRequestError(CrogentxError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
