"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class StoreAPIError(DomainException):
    """Row store returned an error or is unavailable"""

    pass


class InfeasiblePaymentError(DomainException):
    """Payment does not cover period interest, so the loan never amortizes"""

    def __init__(self, payment, period: int):
        self.payment = payment
        self.period = period
        super().__init__(f"Payment {payment} does not cover interest (period {period})")


class ExportServiceError(DomainException):
    """Remote capture service failed; message and hint come from its JSON body"""

    def __init__(self, message: str, hint: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        self.hint = hint
        self.status_code = status_code
        super().__init__(message)


class CaptureError(DomainException):
    """Local rasterization failed"""

    pass


class CaptureTimeoutError(CaptureError):
    """Capture target never reported a settled layout"""

    pass


class ExportFailedError(DomainException):
    """Both the remote capture and the local fallback failed"""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(message)
