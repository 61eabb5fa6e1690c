import asyncio
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import (
    ContractAlreadySignedError,
    ContractNotFoundError,
    ContractValidationError,
    StorageError,
)
from app.models.contract import DEFAULT_TEMPLATE_ID, ContractStatus
from app.repositories.contract_repo import PARTY_COLUMNS, ContractRepository
from app.schemas.contract import ContractGenerateRequest, ContractResponse, ContractTemplate
from app.services.pdf_renderer import render_contract_pdf
from app.services.signature_validator import MAX_SIGNATURE_SIZE_BYTES, validate_signature_file
from app.services.storage.base import (
    BlobStorage,
    signature_key,
    signed_contract_key,
    unsigned_contract_key,
)

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

# user_id becomes part of the signature blob key
UNSAFE_KEY_CHARS = ("/", "\\")


class ContractService:
    """Contract lifecycle: preview, generate, sign, get and list.

    Holds no state of its own; every call reads and writes through the
    injected repository and blob storage.
    """

    def __init__(
        self,
        repo: ContractRepository,
        storage: BlobStorage,
        max_signature_size_bytes: int = MAX_SIGNATURE_SIZE_BYTES,
    ):
        self.repo = repo
        self.storage = storage
        self.max_signature_size_bytes = max_signature_size_bytes

    async def preview(self, template: ContractTemplate) -> bytes:
        """Render the unsigned PDF without persisting anything."""
        return await asyncio.to_thread(render_contract_pdf, template)

    async def generate(self, request: ContractGenerateRequest) -> ContractResponse:
        if not request.influencer_id or not request.brand_id:
            raise ContractValidationError("Missing influencer_id or brand_id")

        template = request.template()
        contract_id = uuid.uuid4()
        pdf_bytes = await asyncio.to_thread(render_contract_pdf, template)

        # 1. Insert the record with an empty URL
        try:
            await self.repo.create(
                id=contract_id,
                template_id=DEFAULT_TEMPLATE_ID,
                influencer_id=request.influencer_id,
                brand_id=request.brand_id,
                status=ContractStatus.PENDING_SIGNATURE,
                contract_data=template.model_dump(),
                contract_url="",
            )
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to create contract record: {exc}") from exc

        # 2. Upload the PDF; remove the record again if that fails
        key = unsigned_contract_key(str(contract_id))
        try:
            await self.storage.upload(key, pdf_bytes, PDF_CONTENT_TYPE)
        except StorageError:
            logger.error(f"PDF upload failed for contract {contract_id}, deleting record")
            await self._delete_quietly(contract_id)
            raise

        # 3. Point the record at the uploaded PDF. A failure here leaves the blob orphaned.
        try:
            contract = await self.repo.update(contract_id, contract_url=self.storage.get_public_url(key))
        except SQLAlchemyError as exc:
            logger.error(f"URL update failed for contract {contract_id}; blob {key} is orphaned")
            raise StorageError(f"Failed to update contract with file URL: {exc}") from exc

        logger.info(
            f"Contract generated: contract_id={contract_id} "
            f"brand_id={request.brand_id!r} influencer_id={request.influencer_id!r}"
        )
        return ContractResponse.model_validate(contract)

    async def sign(
        self,
        contract_id: str,
        user_id: str,
        signature: bytes | None,
        mime_type: str | None,
    ) -> ContractResponse:
        """Attach a signature image and move the contract to SIGNED.

        The signed PDF is stored under its own key; the unsigned render is kept.
        """
        if not contract_id or not user_id:
            raise ContractValidationError("Missing required signature information: contract_id or user_id")
        if signature is None:
            raise ContractValidationError("Missing signature file")

        if any(sep in user_id for sep in UNSAFE_KEY_CHARS):
            raise ContractValidationError("user_id must not contain path separators")

        cid = _parse_contract_id(contract_id)
        contract = await self._get(cid)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        if contract.status == ContractStatus.SIGNED:
            raise ContractAlreadySignedError(contract_id)

        validate_signature_file(signature, mime_type, self.max_signature_size_bytes)

        # Render before any upload so an undecodable image leaves storage untouched
        signed_pdf = await asyncio.to_thread(
            render_contract_pdf, contract.contract_data, signature_image=signature
        )

        sig_key = signature_key(str(cid), user_id, mime_type)
        await self.storage.upload(sig_key, signature, _normalize_image_type(mime_type))
        signature_url = self.storage.get_public_url(sig_key)

        signed_key = signed_contract_key(str(cid))
        await self.storage.upload(signed_key, signed_pdf, PDF_CONTENT_TYPE)

        try:
            updated = await self.repo.mark_signed(
                cid,
                signed_by=user_id,
                signature_url=signature_url,
                contract_url=self.storage.get_public_url(signed_key),
            )
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to update contract status: {exc}") from exc

        if updated is None:
            # Another request signed it between our read and our update
            logger.warning(f"Concurrent signature lost the race: contract_id={contract_id} user_id={user_id!r}")
            raise ContractAlreadySignedError(contract_id)

        logger.info(f"Contract signed: contract_id={contract_id} signed_by={user_id!r}")
        return ContractResponse.model_validate(updated)

    async def get_contract(self, contract_id: str) -> ContractResponse:
        contract = await self._get(_parse_contract_id(contract_id))
        if contract is None:
            raise ContractNotFoundError(contract_id)
        return ContractResponse.model_validate(contract)

    async def list_contracts(self, user_id: str | None, role: str | None) -> list[ContractResponse]:
        if not user_id or not role:
            raise ContractValidationError("user_id and role are required")
        if role not in PARTY_COLUMNS:
            raise ContractValidationError(f"Invalid role: {role!r}. Expected 'brand' or 'influencer'.")
        try:
            contracts = await self.repo.list_for_party(user_id, role)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to list contracts: {exc}") from exc
        return [ContractResponse.model_validate(c) for c in contracts]

    async def _get(self, contract_id: uuid.UUID):
        try:
            return await self.repo.get_by_id(contract_id)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load contract {contract_id}: {exc}") from exc

    async def _delete_quietly(self, contract_id: uuid.UUID) -> None:
        # Best effort: the upload error is what the caller needs to see.
        try:
            await self.repo.delete(contract_id)
        except SQLAlchemyError:
            logger.exception(f"Compensating delete failed for contract {contract_id}")


def _parse_contract_id(contract_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(contract_id)
    except ValueError:
        # Not a UUID, so no such row can exist
        raise ContractNotFoundError(contract_id) from None


def _normalize_image_type(mime_type: str) -> str:
    return "image/jpeg" if mime_type == "image/jpg" else mime_type
