from abc import ABC, abstractmethod

CONTRACTS_PREFIX = "contracts/"
SIGNATURES_PREFIX = "signatures/"


class BlobStorage(ABC):
    """Keyed object store with public-URL resolution.

    Implementations raise StorageError when the backend rejects an operation.
    """

    @abstractmethod
    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store data under key, replacing any existing object. Returns the key."""
        ...

    @abstractmethod
    def get_public_url(self, key: str) -> str:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...


def unsigned_contract_key(contract_id: str) -> str:
    return f"{CONTRACTS_PREFIX}{contract_id}.pdf"


def signed_contract_key(contract_id: str) -> str:
    return f"{CONTRACTS_PREFIX}{contract_id}_signed.pdf"


def signature_key(contract_id: str, user_id: str, mime_type: str) -> str:
    extension = "png" if mime_type == "image/png" else "jpg"
    return f"{SIGNATURES_PREFIX}{contract_id}_{user_id}.{extension}"
