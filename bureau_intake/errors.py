from __future__ import annotations


class IntakeError(RuntimeError):
    def __init__(self, *, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(IntakeError):
    def __init__(self, variable: str) -> None:
        super().__init__(message=f"Missing env var: {variable}", status_code=500)
        self.variable = variable


class MissingFieldError(IntakeError):
    def __init__(self, field: str) -> None:
        super().__init__(message=f"Missing required field: {field}", status_code=400)
        self.field = field


class PayloadError(IntakeError):
    def __init__(self, *, message: str, status_code: int = 400) -> None:
        super().__init__(message=message, status_code=status_code)


class DataStoreError(IntakeError):
    def __init__(self, *, message: str, status_code: int = 500) -> None:
        super().__init__(message=message, status_code=status_code)
