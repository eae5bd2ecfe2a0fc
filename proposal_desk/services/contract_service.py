"""Contract Service - token-gated public status and signed contract submission."""

import hmac
import logging
from datetime import datetime, timezone
from typing import Optional

from proposal_desk.core.config import get_settings
from proposal_desk.core.database import db_service
from proposal_desk.core.exceptions import (
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    UnsupportedMediaError,
)
from proposal_desk.models import (
    ContractRecord,
    ContractStatus,
    ContractStatusView,
    SubmissionResult,
    UploadCandidate,
)

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF"


class ContractService:
    """Handles the client side of contract signing."""

    def __init__(self):
        self._settings = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    async def authorize(self, contract_id: str, token: Optional[str]) -> ContractRecord:
        """
        Load a contract and check the submission token.

        Raises:
            BadRequestError: Token missing or the contract has no token
            NotFoundError: Unknown contract
            ForbiddenError: Token does not match
        """
        if not token:
            raise BadRequestError("Missing authentication token")

        contract = await db_service.get_contract(contract_id)
        if contract is None:
            raise NotFoundError("Contract not found")

        if not contract.client_submission_token:
            raise BadRequestError("This contract does not have a submission token")

        if not hmac.compare_digest(
            contract.client_submission_token.encode(),
            token.encode()
        ):
            logger.warning(f"Invalid submission token for contract {contract_id}")
            raise ForbiddenError("Invalid submission token")

        return contract

    async def public_status(self, contract_id: str, token: Optional[str]) -> ContractStatusView:
        contract = await self.authorize(contract_id, token)
        return ContractStatusView(
            contract_id=contract.id,
            client_name=contract.client_name,
            company_name=contract.company_name,
            sent_at=contract.sent_to_client_at,
            status=contract.status,
            already_signed=contract.signed_at is not None,
        )

    def check_file(self, file: Optional[UploadCandidate]) -> None:
        """Server-side copy of the portal's file checks."""
        if file is None or file.byte_size == 0:
            raise BadRequestError("Please upload your signed contract PDF")

        if file.content_type != PDF_CONTENT_TYPE or not file.content.startswith(PDF_MAGIC):
            raise UnsupportedMediaError("Only PDF files are allowed")

        if file.byte_size > self.settings.MAX_SIGNED_CONTRACT_BYTES:
            limit_mb = self.settings.MAX_SIGNED_CONTRACT_BYTES // (1024 * 1024)
            raise PayloadTooLargeError(f"File size must be less than {limit_mb}MB")

    async def submit_signed(
        self,
        contract_id: str,
        token: Optional[str],
        file: Optional[UploadCandidate],
        client_ip: Optional[str] = None,
    ) -> SubmissionResult:
        """
        Store the signed PDF and mark the contract signed.

        The contract must be awaiting the client's signature. A client record
        is found by email, or created, and linked to the contract.
        """
        contract = await self.authorize(contract_id, token)

        if contract.status != ContractStatus.SENT_TO_CLIENT:
            raise BadRequestError(
                "This contract has already been signed"
                if contract.signed_at else
                "This contract is not available for submission"
            )

        self.check_file(file)
        email, inquiry = await self._client_email(contract)

        signed_at = datetime.now(timezone.utc)
        key = f"signed-contracts/{signed_at:%Y-%m-%d}/{contract_id}-signed.pdf"
        stored = await db_service.upload_file(key, file.content, PDF_CONTENT_TYPE)
        if stored is None:
            raise StorageError("Failed to store the signed contract")

        client = await self._find_or_create_client(contract, email, inquiry)

        updated = await db_service.update_contract(contract_id, {
            "status": ContractStatus.SIGNED.value,
            "signed_contract_url": stored,
            "signed_at": signed_at.isoformat(),
            "signed_by_ip": client_ip,
            "client_id": client.get("id"),
        })
        if updated is None:
            raise StorageError("Failed to record the signed contract")

        logger.info(f"Contract {contract_id} signed by client {client.get('id')}")
        return SubmissionResult(
            success=True,
            message="Thank you! Your signed contract has been received successfully.",
            contract_id=contract_id,
            signed_at=signed_at,
        )

    async def _client_email(self, contract: ContractRecord):
        """Resolve the client's email before anything is written."""
        inquiry = None
        if contract.inquiry_id:
            inquiry = await db_service.get_inquiry(contract.inquiry_id)

        email = (
            contract.client_email_contract
            or (inquiry.email if inquiry else None)
            or contract.client_email
        )
        if not email:
            raise BadRequestError("Client email is required to create client record")
        return email.lower().strip(), inquiry

    async def _find_or_create_client(self, contract: ContractRecord, email: str, inquiry) -> dict:
        existing = await db_service.find_client_by_email(email)
        if existing:
            logger.info(f"Found existing client: {existing.get('id')} ({email})")
            return existing

        created = await db_service.create_client({
            "company_name": contract.company_name or (inquiry.company if inquiry else None) or "Unknown",
            "contact_person": contract.client_name or (inquiry.name if inquiry else None) or "Unknown",
            "email": email,
            "address": contract.client_address or "",
            "created_by": contract.requested_by or contract.sent_to_client_by,
        })
        if created is None:
            raise StorageError("Failed to create client record")
        return created


# Singleton instance
contract_service = ContractService()
