"""Contract-related models - public signing flow."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from proposal_desk.models.enums import ContractStatus


class ContractRecord(BaseModel):
    """Contract row from the database."""
    id: str
    proposal_id: Optional[str] = None
    inquiry_id: Optional[str] = None
    status: ContractStatus = ContractStatus.PENDING_REQUEST
    client_name: Optional[str] = None
    company_name: Optional[str] = None
    client_email_contract: Optional[str] = None
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    client_submission_token: Optional[str] = None
    requested_by: Optional[str] = None
    sent_to_client_by: Optional[str] = None
    sent_to_client_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    signed_contract_url: Optional[str] = None
    signed_by_ip: Optional[str] = None
    client_id: Optional[str] = None


class ContractStatusView(BaseModel):
    """What the client-facing page needs before showing the upload form."""
    contract_id: str
    client_name: Optional[str] = None
    company_name: Optional[str] = None
    sent_at: Optional[datetime] = None
    status: ContractStatus
    already_signed: bool = Field(False, description="True once a signed copy was recorded")


class SubmissionResult(BaseModel):
    """Response of a successful signed contract upload."""
    success: bool = True
    message: str
    contract_id: Optional[str] = None
    signed_at: Optional[datetime] = None


class UploadCandidate(BaseModel):
    """A file picked by the client, before it is sent anywhere."""
    filename: str
    content_type: str
    size: int = Field(..., ge=0)
    content: bytes = b""

    @property
    def byte_size(self) -> int:
        """Length of the loaded bytes; the declared size when nothing is loaded."""
        return len(self.content) if self.content else self.size
