"""
Domain errors and their HTTP translation.

Services raise the DrugStockError subclasses below. The API layer turns them
into HTTP responses through BusinessError, which keeps messages for
server-side failures generic while letting user-caused errors through verbatim.
"""
import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class DrugStockError(Exception):
    """Base class for every error a service reports to its caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DrugStockError):
    """Bad user input: missing field, non-positive quantity, bad date."""


class InsufficientStockError(ValidationError):
    """Requested quantity exceeds what is on the shelf."""

    def __init__(self, drug_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {drug_name}: requested {requested}, available {available}"
        )
        self.available = available
        self.requested = requested


class ConflictError(DrugStockError):
    """State-machine precondition violated (e.g. approving a settled request)."""


class NotFoundError(DrugStockError):
    """Referenced drug, user or disbursement record does not exist."""

    def __init__(self, resource: str, resource_id=None):
        message = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class PermissionDeniedError(DrugStockError):
    """Caller's role does not allow the operation."""


class IntegrationError(DrugStockError):
    """Persistence layer or an external collaborator failed."""


class BusinessError:
    """HTTP exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(detail: str = "Resource not found") -> HTTPException:
        logger.info(f"Not found: {detail}")
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """
        Generic 401 for all authentication failures.

        Same response for wrong password and unknown user so usernames
        can not be enumerated.
        """
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        logger.warning(f"Forbidden access: {reason}")
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """400 for input validation errors. Detail is shown to the user."""
        logger.info(f"Bad request: {detail}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        logger.info(f"Conflict: {detail}")
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    @staticmethod
    def bad_gateway(original_error: Exception = None) -> HTTPException:
        """502 when persistence or an upstream service fails. Details stay in the log."""
        if original_error:
            logger.error(
                f"Integration failure: {type(original_error).__name__}: {original_error}",
                exc_info=True,
            )
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="A backing service is unavailable. Please try again.",
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """Generic 500. Never expose stack traces or SQL errors to users."""
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {original_error}",
                exc_info=True,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )


def to_http_exception(exc: DrugStockError) -> HTTPException:
    """Map a domain error onto its HTTP response."""
    if isinstance(exc, ValidationError):
        return BusinessError.bad_request(exc.message)
    if isinstance(exc, ConflictError):
        return BusinessError.conflict(exc.message)
    if isinstance(exc, NotFoundError):
        return BusinessError.not_found(exc.message)
    if isinstance(exc, PermissionDeniedError):
        return BusinessError.forbidden(exc.message)
    if isinstance(exc, IntegrationError):
        return BusinessError.bad_gateway(exc)
    return BusinessError.server_error(exc)
