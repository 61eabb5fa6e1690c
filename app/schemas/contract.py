import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from app.models.contract import ContractStatus

ContractRole = Literal["brand", "influencer"]


class ContractTemplate(BaseModel):
    """Template fields rendered into the contract PDF.

    The party names are optional at the schema level; the renderer enforces
    them so a missing name is reported as a render failure.
    """
    influencer_name: str | None = None
    brand_name: str | None = None
    rate: int | float = 0
    timeline: str = ""
    deliverables: str = ""
    payment_terms: str = ""
    special_requirements: str | None = None


class ContractGenerateRequest(ContractTemplate):
    influencer_id: str | None = None
    brand_id: str | None = None

    def template(self) -> ContractTemplate:
        return ContractTemplate.model_validate(
            self.model_dump(include=set(ContractTemplate.model_fields))
        )


class ContractResponse(BaseModel):
    """Full contract record as stored."""
    id: uuid.UUID
    template_id: str
    influencer_id: str
    brand_id: str
    status: ContractStatus
    contract_data: dict
    contract_url: str
    signed_by: str | None = None
    signed_at: datetime | None = None
    signature_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    error: str
