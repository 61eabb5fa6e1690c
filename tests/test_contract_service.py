import uuid
from datetime import datetime, timedelta, timezone

import pymupdf
import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import (
    ContractAlreadySignedError,
    ContractNotFoundError,
    ContractValidationError,
    FileValidationError,
    MalformedImageError,
    RenderError,
    StorageError,
)
from app.models.contract import ContractStatus
from app.repositories.contract_repo import ContractRepository
from app.schemas.contract import ContractGenerateRequest, ContractTemplate
from app.services.contract_service import ContractService
from app.services.storage.local import LocalBlobStorage


class FailingBlobStorage(LocalBlobStorage):
    """Local storage that refuses uploads whose key starts with a given prefix."""

    def __init__(self, base_dir: str, fail_prefix: str):
        super().__init__(base_dir, "http://testserver/storage")
        self.fail_prefix = fail_prefix

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        if key.startswith(self.fail_prefix):
            raise StorageError(f"Failed to upload {key}: simulated outage")
        return await super().upload(key, data, content_type)


class FailingUpdateRepository(ContractRepository):
    async def update(self, contract_id, **values):
        raise SQLAlchemyError("connection reset")


class UnreachableRepository(ContractRepository):
    async def get_by_id(self, contract_id):
        raise SQLAlchemyError("connection refused")

    async def list_for_party(self, user_id, role):
        raise SQLAlchemyError("connection refused")


def _request(template_fields, **ids) -> ContractGenerateRequest:
    ids.setdefault("influencer_id", "inf-1")
    ids.setdefault("brand_id", "brand-1")
    return ContractGenerateRequest(**template_fields, **ids)


# --- preview ---

async def test_preview_returns_pdf_and_writes_nothing(service, template_fields, storage_dir):
    pdf_bytes = await service.preview(ContractTemplate(**template_fields))

    assert pdf_bytes.startswith(b"%PDF")
    assert not storage_dir.exists()


async def test_preview_without_names_is_render_error(service):
    with pytest.raises(RenderError):
        await service.preview(ContractTemplate(rate=100))


# --- generate ---

async def test_generate_creates_pending_contract(service, template_fields, storage_dir):
    contract = await service.generate(_request(template_fields))

    assert contract.status == ContractStatus.PENDING_SIGNATURE
    assert contract.template_id == "default"
    assert contract.influencer_id == "inf-1"
    assert contract.brand_id == "brand-1"
    assert contract.contract_data["brand_name"] == "Test Brand"
    assert contract.contract_data["rate"] == 1000
    assert contract.signed_by is None
    assert contract.signed_at is None
    assert contract.signature_url is None
    assert contract.contract_url == f"http://testserver/storage/contracts/{contract.id}.pdf"
    assert (storage_dir / "contracts" / f"{contract.id}.pdf").read_bytes().startswith(b"%PDF")


@pytest.mark.parametrize("missing", ["influencer_id", "brand_id"])
async def test_generate_requires_both_party_ids(service, repo, template_fields, storage_dir, missing):
    with pytest.raises(ContractValidationError, match="Missing influencer_id or brand_id"):
        await service.generate(_request(template_fields, **{missing: None}))

    assert not storage_dir.exists()
    assert await repo.list_for_party("brand-1", "brand") == []


async def test_generate_removes_record_when_upload_fails(repo, template_fields, storage_dir):
    service = ContractService(repo, FailingBlobStorage(str(storage_dir), fail_prefix="contracts/"))

    with pytest.raises(StorageError, match="simulated outage"):
        await service.generate(_request(template_fields))

    assert await repo.list_for_party("brand-1", "brand") == []


async def test_generate_leaves_blob_when_url_update_fails(session, storage, template_fields, storage_dir):
    service = ContractService(FailingUpdateRepository(session), storage)

    with pytest.raises(StorageError, match="Failed to update contract with file URL"):
        await service.generate(_request(template_fields))

    assert len(list((storage_dir / "contracts").glob("*.pdf"))) == 1


# --- sign ---

async def test_sign_moves_contract_to_signed(service, template_fields, png_signature, storage_dir):
    created = await service.generate(_request(template_fields))

    signed = await service.sign(str(created.id), "user-x", png_signature, "image/png")

    assert signed.status == ContractStatus.SIGNED
    assert signed.signed_by == "user-x"
    assert signed.signed_at is not None
    assert signed.signature_url.endswith(f"/signatures/{created.id}_user-x.png")
    assert signed.contract_url.endswith(f"/contracts/{created.id}_signed.pdf")
    assert signed.contract_data == created.contract_data

    # unsigned render is kept next to the signed one
    assert (storage_dir / "contracts" / f"{created.id}.pdf").exists()
    assert (storage_dir / "signatures" / f"{created.id}_user-x.png").read_bytes() == png_signature
    signed_pdf = (storage_dir / "contracts" / f"{created.id}_signed.pdf").read_bytes()
    with pymupdf.open(stream=signed_pdf, filetype="pdf") as doc:
        assert len(doc[0].get_images()) == 1


async def test_sign_with_jpeg_uses_jpg_extension(service, template_fields, storage_dir):
    created = await service.generate(_request(template_fields))
    jpeg = pymupdf.Pixmap(pymupdf.csRGB, 20, 20, bytes(20 * 20 * 3), False).tobytes("jpg")

    signed = await service.sign(str(created.id), "user-x", jpeg, "image/jpeg")

    assert signed.signature_url.endswith(f"/signatures/{created.id}_user-x.jpg")


async def test_second_signature_is_rejected(service, template_fields, png_signature):
    created = await service.generate(_request(template_fields))
    first = await service.sign(str(created.id), "user-x", png_signature, "image/png")

    with pytest.raises(ContractAlreadySignedError, match="already been signed"):
        await service.sign(str(created.id), "user-y", png_signature, "image/png")

    current = await service.get_contract(str(created.id))
    assert current.signed_by == "user-x"
    assert current.signed_at == first.signed_at
    assert current.signature_url == first.signature_url


async def test_invalid_signature_changes_nothing(service, template_fields, storage_dir):
    created = await service.generate(_request(template_fields))

    with pytest.raises(MalformedImageError):
        await service.sign(str(created.id), "user-x", b"GIF89a" + b"\x00" * 64, "image/png")

    assert not (storage_dir / "signatures").exists()
    current = await service.get_contract(str(created.id))
    assert current.status == ContractStatus.PENDING_SIGNATURE
    assert current.contract_url == created.contract_url


async def test_undecodable_signature_writes_nothing(service, template_fields, storage_dir):
    created = await service.generate(_request(template_fields))

    with pytest.raises(RenderError):
        await service.sign(str(created.id), "user-x", b"\x89PNG" + b"\x00" * 200, "image/png")

    assert not (storage_dir / "signatures").exists()
    assert not (storage_dir / "contracts" / f"{created.id}_signed.pdf").exists()
    current = await service.get_contract(str(created.id))
    assert current.status == ContractStatus.PENDING_SIGNATURE


@pytest.mark.parametrize("user_id", ["/../../../../x", "team/alice", "..\\x"])
async def test_user_id_with_path_separators_is_rejected(service, template_fields, png_signature, storage_dir, user_id):
    created = await service.generate(_request(template_fields))

    with pytest.raises(ContractValidationError, match="path separators"):
        await service.sign(str(created.id), user_id, png_signature, "image/png")

    assert not (storage_dir / "signatures").exists()


async def test_oversized_signature_uses_configured_limit(repo, storage, template_fields, png_signature):
    service = ContractService(repo, storage, max_signature_size_bytes=len(png_signature) - 1)
    created = await service.generate(_request(template_fields))

    with pytest.raises(FileValidationError):
        await service.sign(str(created.id), "user-x", png_signature, "image/png")


@pytest.mark.parametrize(
    "contract_id,user_id,signature",
    [("", "user-x", b"sig"), ("abc", "", b"sig"), ("abc", "user-x", None)],
)
async def test_sign_requires_all_inputs(service, contract_id, user_id, signature):
    with pytest.raises(ContractValidationError):
        await service.sign(contract_id, user_id, signature, "image/png")


async def test_sign_unknown_contract(service, png_signature):
    with pytest.raises(ContractNotFoundError):
        await service.sign(str(uuid.uuid4()), "user-x", png_signature, "image/png")


async def test_mark_signed_only_transitions_once(repo, service, template_fields):
    created = await service.generate(_request(template_fields))
    values = {"signed_by": "user-x", "signature_url": "s", "contract_url": "c"}

    first = await repo.mark_signed(created.id, **values)
    second = await repo.mark_signed(created.id, **{**values, "signed_by": "user-y"})

    assert first.status == ContractStatus.SIGNED
    assert first.signed_by == "user-x"
    assert second is None


# --- get / list ---

async def test_get_returns_stored_record(service, template_fields):
    created = await service.generate(_request(template_fields))

    first = await service.get_contract(str(created.id))
    second = await service.get_contract(str(created.id))

    assert first == created
    assert first == second


@pytest.mark.parametrize("contract_id", [str(uuid.uuid4()), "not-a-uuid"])
async def test_get_unknown_contract(service, contract_id):
    with pytest.raises(ContractNotFoundError, match=contract_id):
        await service.get_contract(contract_id)


async def test_list_is_newest_first_and_filtered_by_role(repo, service):
    t1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset, name in enumerate(["c1", "c2", "c3"]):
        await repo.create(
            influencer_id="inf-1",
            brand_id="brand-1",
            status=ContractStatus.PENDING_SIGNATURE,
            contract_data={"brand_name": name},
            created_at=t1 + timedelta(minutes=offset),
        )
    await repo.create(
        influencer_id="inf-2",
        brand_id="brand-2",
        status=ContractStatus.PENDING_SIGNATURE,
        contract_data={"brand_name": "other"},
    )

    by_brand = await service.list_contracts("brand-1", "brand")
    by_influencer = await service.list_contracts("inf-1", "influencer")

    assert [c.contract_data["brand_name"] for c in by_brand] == ["c3", "c2", "c1"]
    assert [c.id for c in by_influencer] == [c.id for c in by_brand]
    assert await service.list_contracts("nobody", "brand") == []


@pytest.mark.parametrize(
    "user_id,role",
    [("brand-1", "agency"), (None, "brand"), ("brand-1", None), ("", "brand")],
)
async def test_list_rejects_bad_parameters(service, user_id, role):
    with pytest.raises(ContractValidationError):
        await service.list_contracts(user_id, role)


async def test_read_failures_surface_as_storage_errors(session, storage, png_signature):
    service = ContractService(UnreachableRepository(session), storage)
    contract_id = str(uuid.uuid4())

    with pytest.raises(StorageError, match="Failed to load contract"):
        await service.get_contract(contract_id)
    with pytest.raises(StorageError, match="Failed to load contract"):
        await service.sign(contract_id, "user-x", png_signature, "image/png")
    with pytest.raises(StorageError, match="Failed to list contracts"):
        await service.list_contracts("brand-1", "brand")
