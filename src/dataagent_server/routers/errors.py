"""Mapping of DataAgentError kinds onto HTTP error responses."""

from fastapi import HTTPException

from dataagent_server.errors import DataAgentError, DataAgentTransportError, ErrorKind

# 499: client closed request
_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.PROTOCOL: 502,
    ErrorKind.CANCELLED: 499,
}


def error_details(error: DataAgentError) -> dict:
    """Build the details dict for an error envelope."""
    details: dict = {}
    if isinstance(error, DataAgentTransportError) and error.status_code is not None:
        details["upstream_status"] = error.status_code
    return details


def to_http_exception(error: DataAgentError) -> HTTPException:
    """Convert a DataAgentError into an HTTPException with the error envelope."""
    return HTTPException(
        status_code=_STATUS_BY_KIND[error.kind],
        detail={
            "error": {
                "code": f"{error.kind.value}_error",
                "message": str(error),
                "details": error_details(error),
            }
        },
    )
