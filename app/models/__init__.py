from app.models.base import Base
from app.models.contract import Contract, ContractStatus

__all__ = ["Base", "Contract", "ContractStatus"]
