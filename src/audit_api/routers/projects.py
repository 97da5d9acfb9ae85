"""Projects router."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Path, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse

from audit_api.constants.slots import AttachmentSlot, get_slot_definition
from audit_api.dependencies import get_project_read_service, get_project_write_service
from audit_api.models.domain.admin_user import AdminUser
from audit_api.models.domain.attachment import IncomingFile
from audit_api.models.domain.pipeline import (
    FailureKind,
    PipelineFailure,
    ValidationFailure,
    WriteResult,
)
from audit_api.models.domain.project import ProjectView
from audit_api.models.dto.project import (
    ProjectCreatedResponse,
    ProjectListResponse,
    ProjectWriteErrorResponse,
    ProjectWriteOkResponse,
)
from audit_api.security.auth import get_current_user
from audit_api.security.rate_limit import API_DEFAULT_LIMIT, limiter
from audit_api.services.project_read_service import ProjectReadService
from audit_api.services.project_write_service import ProjectWriteService

router = APIRouter()

WRITE_ERROR_RESPONSES: dict[int | str, dict] = {
    code: {"model": ProjectWriteErrorResponse} for code in (400, 403, 404, 422, 500, 502)
}

FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.INVALID_FILE_TYPE: status.HTTP_400_BAD_REQUEST,
    FailureKind.FILE_TOO_LARGE: status.HTTP_400_BAD_REQUEST,
    FailureKind.UPLOAD_FAILED: status.HTTP_502_BAD_GATEWAY,
    FailureKind.METADATA_INSERT_FAILED: status.HTTP_502_BAD_GATEWAY,
    FailureKind.PROJECT_WRITE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _render(result: WriteResult, success_status: int = status.HTTP_200_OK, include_id: bool = False) -> JSONResponse:
    """Turn a pipeline result into the JSON envelope clients expect."""
    if isinstance(result, ValidationFailure):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"ok": False, "error": result.error, "field_errors": result.field_errors},
        )
    if isinstance(result, PipelineFailure):
        return JSONResponse(
            status_code=FAILURE_STATUS[result.kind],
            content={"ok": False, "error": result.message, "kind": result.kind.value},
        )
    content: dict = {"ok": True}
    if include_id:
        content["project"] = {"id": result.project_id}
    return JSONResponse(status_code=success_status, content=content)


async def _to_incoming(slot: AttachmentSlot, upload: UploadFile | None) -> IncomingFile | None:
    """Read one multipart file input. Empty inputs count as absent."""
    if upload is None or not upload.filename:
        return None
    # One byte past the cap is enough to report the file as too large
    content = await upload.read(get_slot_definition(slot).max_size_bytes + 1)
    if not content:
        return None
    return IncomingFile(
        filename=upload.filename,
        content_type=upload.content_type or "",
        content=content,
    )


async def _collect_files(uploads: dict[AttachmentSlot, UploadFile | None]) -> dict[AttachmentSlot, IncomingFile | None]:
    return {slot: await _to_incoming(slot, upload) for slot, upload in uploads.items()}


def _raw_fields(
    reference: str,
    customer: str,
    certification_type: str,
    city: str,
    inspection_date: str,
    status_value: str,
    notes: str,
) -> dict[str, str]:
    return {
        "reference": reference,
        "customer": customer,
        "certification_type": certification_type,
        "city": city,
        "inspection_date": inspection_date,
        "status": status_value,
        "notes": notes,
    }


@router.get("", response_model=ProjectListResponse)
@limiter.limit(API_DEFAULT_LIMIT)
async def list_projects(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    service: Annotated[ProjectReadService, Depends(get_project_read_service)],
    year: int | None = Query(default=None, ge=1900, le=9999),
    status: str | None = Query(default=None, max_length=50),
    search: str | None = Query(default=None, max_length=200),
    sort_by: str | None = Query(default=None, max_length=50),
    sort_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
) -> ProjectListResponse:
    """List projects with their current attachments.

    Also returns the years that have projects, for the year selector.
    """
    items = await service.list_projects(
        year=year,
        status=status,
        search=search,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    years = await service.get_years()
    return ProjectListResponse(items=items, total=len(items), years=years)


@router.get("/{project_id}", response_model=ProjectView)
@limiter.limit(API_DEFAULT_LIMIT)
async def get_project(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    service: Annotated[ProjectReadService, Depends(get_project_read_service)],
    project_id: int = Path(ge=1),
) -> ProjectView:
    """Get one project."""
    return await service.get_project(project_id)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ProjectCreatedResponse,
    responses=WRITE_ERROR_RESPONSES,
)
@limiter.limit(API_DEFAULT_LIMIT)
async def create_project(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    service: Annotated[ProjectWriteService, Depends(get_project_write_service)],
    reference: str = Form(default=""),
    customer: str = Form(default=""),
    certification_type: str = Form(default=""),
    city: str = Form(default=""),
    inspection_date: str = Form(default=""),
    status_value: str = Form(default="", alias="status"),
    notes: str = Form(default=""),
    inspection_plan: UploadFile | None = File(default=None, alias=AttachmentSlot.INSPECTION_PLAN.value),
    audit_report_pdf: UploadFile | None = File(default=None, alias=AttachmentSlot.AUDIT_REPORT_PDF.value),
    audit_report_word: UploadFile | None = File(default=None, alias=AttachmentSlot.AUDIT_REPORT_WORD.value),
    invoice: UploadFile | None = File(default=None, alias=AttachmentSlot.INVOICE.value),
    travel_fees: UploadFile | None = File(default=None, alias=AttachmentSlot.TRAVEL_FEES.value),
) -> JSONResponse:
    """Create a project with up to one file per attachment slot."""
    files = await _collect_files(
        {
            AttachmentSlot.INSPECTION_PLAN: inspection_plan,
            AttachmentSlot.AUDIT_REPORT_PDF: audit_report_pdf,
            AttachmentSlot.AUDIT_REPORT_WORD: audit_report_word,
            AttachmentSlot.INVOICE: invoice,
            AttachmentSlot.TRAVEL_FEES: travel_fees,
        }
    )
    result = await service.create_project(
        _raw_fields(reference, customer, certification_type, city, inspection_date, status_value, notes),
        files,
        current_user.as_caller(),
    )
    return _render(result, status.HTTP_201_CREATED, include_id=True)


@router.put("/{project_id}", response_model=ProjectWriteOkResponse, responses=WRITE_ERROR_RESPONSES)
@limiter.limit(API_DEFAULT_LIMIT)
async def update_project(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    service: Annotated[ProjectWriteService, Depends(get_project_write_service)],
    project_id: int = Path(ge=1),
    reference: str = Form(default=""),
    customer: str = Form(default=""),
    certification_type: str = Form(default=""),
    city: str = Form(default=""),
    inspection_date: str = Form(default=""),
    status_value: str = Form(default="", alias="status"),
    notes: str = Form(default=""),
    inspection_plan: UploadFile | None = File(default=None, alias=AttachmentSlot.INSPECTION_PLAN.value),
    audit_report_pdf: UploadFile | None = File(default=None, alias=AttachmentSlot.AUDIT_REPORT_PDF.value),
    audit_report_word: UploadFile | None = File(default=None, alias=AttachmentSlot.AUDIT_REPORT_WORD.value),
    invoice: UploadFile | None = File(default=None, alias=AttachmentSlot.INVOICE.value),
    travel_fees: UploadFile | None = File(default=None, alias=AttachmentSlot.TRAVEL_FEES.value),
) -> JSONResponse:
    """Replace the fields of a project; submitted files supersede the current ones."""
    files = await _collect_files(
        {
            AttachmentSlot.INSPECTION_PLAN: inspection_plan,
            AttachmentSlot.AUDIT_REPORT_PDF: audit_report_pdf,
            AttachmentSlot.AUDIT_REPORT_WORD: audit_report_word,
            AttachmentSlot.INVOICE: invoice,
            AttachmentSlot.TRAVEL_FEES: travel_fees,
        }
    )
    result = await service.update_project(
        project_id,
        _raw_fields(reference, customer, certification_type, city, inspection_date, status_value, notes),
        files,
        current_user.as_caller(),
    )
    return _render(result)


@router.delete("/{project_id}", response_model=ProjectWriteOkResponse, responses=WRITE_ERROR_RESPONSES)
@limiter.limit(API_DEFAULT_LIMIT)
async def delete_project(
    request: Request,
    current_user: Annotated[AdminUser, Depends(get_current_user)],
    service: Annotated[ProjectWriteService, Depends(get_project_write_service)],
    project_id: int = Path(ge=1),
) -> JSONResponse:
    """Delete a project, its attachment rows and its blobs."""
    result = await service.delete_project(project_id, current_user.as_caller())
    return _render(result)
