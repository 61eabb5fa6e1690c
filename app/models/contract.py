from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKey

DEFAULT_TEMPLATE_ID = "default"


class ContractStatus(str, enum.Enum):
    # DRAFT and REJECTED have no producing operation yet.
    DRAFT = "DRAFT"
    PENDING_SIGNATURE = "PENDING_SIGNATURE"
    SIGNED = "SIGNED"
    REJECTED = "REJECTED"


class Contract(Base, UUIDPrimaryKey, TimestampMixin):
    __tablename__ = "contracts"

    template_id: Mapped[str] = mapped_column(String(100), nullable=False, default=DEFAULT_TEMPLATE_ID)
    influencer_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    brand_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[ContractStatus] = mapped_column(
        Enum(ContractStatus, name="contract_status", native_enum=False, length=32),
        nullable=False,
        default=ContractStatus.PENDING_SIGNATURE,
    )
    contract_data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False
    )
    contract_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    signed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    signature_url: Mapped[str | None] = mapped_column(Text, nullable=True)
