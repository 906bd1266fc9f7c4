# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: registration, member listing, statistics.
Thin HTTP layer — maps domain errors to the response envelope.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from app.core.dependencies import get_registration_service
from app.core.exceptions import ConflictError, StorageError, ValidationError
from app.core.logging import get_logger
from app.schemas import (
    ErrorResponse, MembersResponse, RegistrationResponse, StatsResponse,
    ValidationRulesResponse,
)
from app.services.registration_service import RegistrationService

router = APIRouter(prefix="/api", tags=["Members"])
logger = get_logger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def error_response(status_code: int, message: str,
                   errors: Optional[List[Dict[str, str]]] = None) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


@router.post("/register", status_code=201, response_model=RegistrationResponse,
             responses=ERROR_RESPONSES)
def register_member(payload: Dict[str, Any] = Body(...),
                    service: RegistrationService = Depends(get_registration_service)):
    try:
        data = service.register(payload)
    except ValidationError as exc:
        return error_response(400, "Validation failed", errors=exc.errors)
    except ConflictError as exc:
        return error_response(409, str(exc))
    except StorageError:
        logger.exception("Registration error")
        return error_response(500, "Internal server error. Please try again later.")
    return {"success": True, "message": "Registration successful!", "data": data}


@router.get("/members", response_model=MembersResponse, responses={500: {"model": ErrorResponse}})
def list_members(service: RegistrationService = Depends(get_registration_service)):
    try:
        members = service.list_members()
    except StorageError:
        logger.exception("Error fetching members")
        return error_response(500, "Error fetching members")
    return {"success": True, "total": len(members), "data": members}


@router.get("/stats", response_model=StatsResponse, responses={500: {"model": ErrorResponse}})
def get_statistics(service: RegistrationService = Depends(get_registration_service)):
    try:
        stats = service.get_statistics()
    except StorageError:
        logger.exception("Error fetching statistics")
        return error_response(500, "Error fetching statistics")
    return {"success": True, "data": stats}


@router.get("/validation-rules", response_model=ValidationRulesResponse)
def get_validation_rules(service: RegistrationService = Depends(get_registration_service)):
    return {"success": True, "data": service.validation_rules()}
