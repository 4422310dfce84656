"""
Mapping of service errors onto HTTP responses.
"""
from fastapi import HTTPException

from docchat.core.exceptions import ExternalServiceError, NotFoundError


def http_error(error: Exception, action: str) -> HTTPException:
    """Build the HTTPException a route should raise for a service error."""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ValueError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, ExternalServiceError):
        return HTTPException(status_code=502, detail=f"Error {action}: {error}")
    return HTTPException(status_code=500, detail=f"Error {action}: {str(error)}")
