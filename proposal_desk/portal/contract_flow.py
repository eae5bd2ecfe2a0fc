"""Client-facing signed contract upload flow.

The client opens ``/contracts/<id>?token=<token>`` from an email, sees the
contract details, picks the signed PDF and uploads it. Any failure lands
on a terminal error screen that shows contact details instead of a retry
button.
"""

import logging
from typing import Optional

from proposal_desk.core.config import get_settings
from proposal_desk.core.exceptions import ApiError, FieldError
from proposal_desk.integrations.api_client import ProposalApiClient
from proposal_desk.models import ContractStatusView, SubmissionResult, UploadCandidate, UploadStage
from proposal_desk.wizard.notifications import Notifier

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

INVALID_LINK_MESSAGE = "Invalid or missing authentication token"
ALREADY_SIGNED_MESSAGE = (
    "This contract has already been signed. Please contact us if you need assistance."
)
LOAD_FAILED_MESSAGE = (
    "An error occurred while loading the contract. Please try again or contact us directly."
)
UPLOAD_FAILED_MESSAGE = (
    "An error occurred while uploading your contract. Please try again or contact us directly."
)


def validate_signed_contract_file(
    file: Optional[UploadCandidate],
    max_bytes: Optional[int] = None,
) -> Optional[FieldError]:
    """
    Check a picked file before anything is sent.

    Returns:
        FieldError for a non-PDF or oversize file, None when acceptable
    """
    if file is None:
        return FieldError(field="signedContract", message="Please select a file")

    limit = max_bytes or get_settings().MAX_SIGNED_CONTRACT_BYTES

    if file.content_type != PDF_CONTENT_TYPE:
        return FieldError(field="signedContract", message="Only PDF files are allowed")

    if file.byte_size > limit:
        return FieldError(
            field="signedContract",
            message=f"File size must be less than {limit // (1024 * 1024)}MB",
        )

    return None


class ContractResponseFlow:
    """Stage machine: LOADING -> CONFIRMATION -> UPLOADING -> SUCCESS, or ERROR."""

    def __init__(
        self,
        api: ProposalApiClient,
        contract_id: str,
        token: Optional[str],
        notifier: Optional[Notifier] = None,
    ):
        self.api = api
        self.contract_id = contract_id
        self.token = token
        self.notifier = notifier or Notifier()

        self.stage = UploadStage.LOADING
        self.message = ""
        self.contract: Optional[ContractStatusView] = None
        self.selected_file: Optional[UploadCandidate] = None
        self.file_error: Optional[str] = None
        self.result: Optional[SubmissionResult] = None
        self._load_request_id = 0

    @property
    def contact_info(self) -> dict:
        settings = get_settings()
        return {"email": settings.CONTACT_EMAIL, "phone": settings.CONTACT_PHONE}

    @property
    def shows_upload_form(self) -> bool:
        return self.stage == UploadStage.CONFIRMATION

    @property
    def can_upload(self) -> bool:
        return self.stage == UploadStage.CONFIRMATION and self.selected_file is not None

    async def load(self) -> UploadStage:
        """Fetch the contract status and decide whether the upload form is shown."""
        if not self.token or not self.contract_id:
            self._fail(INVALID_LINK_MESSAGE)
            return self.stage

        self._load_request_id += 1
        request_id = self._load_request_id
        self.stage = UploadStage.LOADING
        status = None

        try:
            status = await self.api.get_contract_status(self.contract_id, self.token)
        except ApiError as e:
            if request_id == self._load_request_id:
                self._fail(e.message if e.status_code else LOAD_FAILED_MESSAGE)
            return self.stage
        finally:
            if status is None and request_id == self._load_request_id and self.stage == UploadStage.LOADING:
                self._fail(LOAD_FAILED_MESSAGE)

        if request_id != self._load_request_id:
            logger.debug(f"Discarding stale contract status response #{request_id}")
            return self.stage

        if status.already_signed:
            self._fail(ALREADY_SIGNED_MESSAGE)
            return self.stage

        self.contract = status
        self.stage = UploadStage.CONFIRMATION
        return self.stage

    def select_file(self, file: Optional[UploadCandidate]) -> bool:
        """Pick the signed PDF; an invalid pick clears the selection."""
        if self.stage != UploadStage.CONFIRMATION:
            return False

        self.file_error = None
        error = validate_signed_contract_file(file) if file is not None else None
        if file is None or error:
            self.selected_file = None
            self.file_error = error.message if error else None
            return False

        self.selected_file = file
        return True

    async def upload(self) -> UploadStage:
        if not self.can_upload:
            return self.stage

        self.stage = UploadStage.UPLOADING
        result = None
        try:
            result = await self.api.submit_signed_contract(
                self.contract_id, self.token, self.selected_file
            )
        except ApiError as e:
            self._fail(e.message if e.status_code else UPLOAD_FAILED_MESSAGE)
            return self.stage
        finally:
            if result is None and self.stage == UploadStage.UPLOADING:
                self._fail(UPLOAD_FAILED_MESSAGE)

        self.result = result
        self.message = result.message or "Your signed contract has been received successfully"
        self.stage = UploadStage.SUCCESS
        self.notifier.success(self.message)
        return self.stage

    def _fail(self, message: str) -> None:
        self.stage = UploadStage.ERROR
        self.message = message
        self.selected_file = None
        self.notifier.error(message)
