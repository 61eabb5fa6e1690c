import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import utcnow
from app.models.contract import Contract, ContractStatus

PARTY_COLUMNS = {
    "brand": Contract.brand_id,
    "influencer": Contract.influencer_id,
}


class ContractRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Contract:
        contract = Contract(**kwargs)
        self.session.add(contract)
        await self.session.flush()
        await self.session.refresh(contract)
        return contract

    async def get_by_id(self, contract_id: uuid.UUID) -> Contract | None:
        result = await self.session.execute(
            select(Contract).where(Contract.id == contract_id)
        )
        return result.scalar_one_or_none()

    async def list_for_party(self, user_id: str, role: str) -> list[Contract]:
        """Contracts where the given user is the brand or the influencer, newest first."""
        column = PARTY_COLUMNS[role]
        result = await self.session.execute(
            select(Contract).where(column == user_id).order_by(Contract.created_at.desc())
        )
        return list(result.scalars().all())

    async def update(self, contract_id: uuid.UUID, **values) -> Contract | None:
        contract = await self.get_by_id(contract_id)
        if contract is None:
            return None
        for field, value in values.items():
            setattr(contract, field, value)
        await self.session.flush()
        await self.session.refresh(contract)
        return contract

    async def mark_signed(
        self,
        contract_id: uuid.UUID,
        signed_by: str,
        signature_url: str,
        contract_url: str,
    ) -> Contract | None:
        """Move a contract to SIGNED unless it already is.

        Single conditional UPDATE, so two concurrent signers cannot both win.
        Returns None when no row was transitioned.
        """
        now = utcnow()
        result = await self.session.execute(
            update(Contract)
            .where(Contract.id == contract_id, Contract.status != ContractStatus.SIGNED)
            .values(
                status=ContractStatus.SIGNED,
                signed_by=signed_by,
                signed_at=now,
                signature_url=signature_url,
                contract_url=contract_url,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        contract = await self.get_by_id(contract_id)
        await self.session.refresh(contract)
        return contract

    async def delete(self, contract_id: uuid.UUID) -> None:
        await self.session.execute(delete(Contract).where(Contract.id == contract_id))
        await self.session.flush()
