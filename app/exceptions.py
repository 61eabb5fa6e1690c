class ContractFlowError(Exception):
    """Base exception for all contract workflow errors.

    Each subclass carries the HTTP status it maps to, so the API layer never
    has to inspect messages to choose a response code.
    """

    status_code: int = 500


class ContractValidationError(ContractFlowError):
    """Client-supplied data is missing or malformed."""

    status_code = 400


class AuthenticationError(ContractFlowError):
    status_code = 401

    def __init__(self, message: str = "No authorization header"):
        super().__init__(message)


class ContractNotFoundError(ContractFlowError):
    status_code = 404

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__(f"Contract {contract_id} not found")


class ContractAlreadySignedError(ContractFlowError):
    # Treated as a client error: the caller already did this.
    status_code = 400

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__("Contract has already been signed")


class FileValidationError(ContractFlowError):
    """Uploaded signature file failed size, type or content checks."""

    status_code = 400


class FileTooLargeError(FileValidationError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Signature file size exceeds {limit // (1024 * 1024)}MB limit")


class UnsupportedFileTypeError(FileValidationError):
    def __init__(self, content_type: str):
        self.content_type = content_type
        super().__init__(
            f"Invalid signature file type: {content_type}. Only PNG and JPEG formats are allowed."
        )


class MalformedImageError(FileValidationError):
    def __init__(self):
        super().__init__("Invalid image file format")


class RenderError(ContractFlowError):
    """PDF could not be produced: incomplete template or unusable signature image."""

    status_code = 500


class StorageError(ContractFlowError):
    """A blob upload/delete or a contract row operation failed."""

    status_code = 500
