import logging

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from app.dependencies import require_bearer_token
from app.schemas.contract import (
    ContractGenerateRequest,
    ContractResponse,
    ContractTemplate,
    ErrorResponse,
)
from app.services.contract_service import PDF_CONTENT_TYPE, ContractService

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter(prefix="/contracts", tags=["Contracts"], responses=ERROR_RESPONSES)


def get_contract_service() -> ContractService:
    # Placeholder, overridden in main.py with real DB session injection
    raise NotImplementedError("Dependency override not configured")


@router.post(
    "/preview",
    response_class=Response,
    responses={200: {"content": {PDF_CONTENT_TYPE: {}}}},
)
async def preview_contract(
    template: ContractTemplate,
    service: ContractService = Depends(get_contract_service),
):
    """Render a contract PDF from template fields without saving anything."""
    logger.info(f"Preview request: brand={template.brand_name!r} influencer={template.influencer_name!r}")
    pdf_bytes = await service.preview(template)
    return Response(
        content=pdf_bytes,
        media_type=PDF_CONTENT_TYPE,
        headers={"Content-Disposition": "inline; filename=contract_preview.pdf"},
    )


@router.post("/generate", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
async def generate_contract(
    request: ContractGenerateRequest,
    _token: str = Depends(require_bearer_token),
    service: ContractService = Depends(get_contract_service),
):
    """Create a contract awaiting signature and store its unsigned PDF."""
    logger.info(f"Generate request: brand_id={request.brand_id!r} influencer_id={request.influencer_id!r}")
    result = await service.generate(request)
    logger.info(f"Generate accepted: contract_id={result.id} status={result.status.value}")
    return result


@router.post("/sign", response_model=ContractResponse)
async def sign_contract(
    contract_id: str | None = Form(default=None),
    user_id: str | None = Form(default=None),
    signature_file: UploadFile | None = File(default=None),
    _token: str = Depends(require_bearer_token),
    service: ContractService = Depends(get_contract_service),
):
    """Sign a contract with an uploaded PNG or JPEG signature image."""
    signature, mime_type = None, None
    if signature_file is not None:
        signature = await signature_file.read()
        mime_type = signature_file.content_type
    logger.info(f"Sign request: contract_id={contract_id!r} user_id={user_id!r} content_type={mime_type!r}")
    result = await service.sign(contract_id, user_id, signature, mime_type)
    logger.info(f"Sign accepted: contract_id={result.id} signed_by={result.signed_by!r}")
    return result


@router.get("/{contract_id}", response_model=ContractResponse, responses={404: {"model": ErrorResponse}})
async def get_contract(
    contract_id: str,
    _token: str = Depends(require_bearer_token),
    service: ContractService = Depends(get_contract_service),
):
    """Get a contract record by id."""
    logger.info(f"Get contract: contract_id={contract_id}")
    return await service.get_contract(contract_id)


@router.get("", response_model=list[ContractResponse])
async def list_contracts(
    user_id: str | None = Query(default=None),
    role: str | None = Query(default=None),
    _token: str = Depends(require_bearer_token),
    service: ContractService = Depends(get_contract_service),
):
    """List the contracts of a brand or influencer, newest first."""
    logger.info(f"List contracts: user_id={user_id!r} role={role!r}")
    results = await service.list_contracts(user_id, role)
    logger.info(f"List contracts response: user_id={user_id!r} count={len(results)}")
    return results
