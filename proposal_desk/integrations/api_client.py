"""REST client the wizard and the contract portal use to reach the backend."""

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from proposal_desk.core.config import get_settings
from proposal_desk.core.exceptions import ApiError, FieldError, ServerValidationError
from proposal_desk.models import (
    ContractStatusView,
    PreviewRequest,
    PreviewResult,
    ProposalCreateRequest,
    ProposalDraft,
    ProposalRecord,
    ProposalTemplate,
    ProposalUpdateRequest,
    ServiceType,
    SubmissionResult,
    UploadCandidate,
    User,
)
from proposal_desk.models.catalog import template_type_for

logger = logging.getLogger(__name__)

UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server"


class ProposalApiClient:
    """
    Async client for the proposal desk REST API.

    A fresh httpx.AsyncClient is opened per call. Failures surface as
    ApiError; a 422 carrying field errors surfaces as ServerValidationError.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self._settings = None
        self._base_url = base_url
        self._timeout = timeout
        self.user_id = user_id
        self.transport = transport

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def base_url(self) -> str:
        return (self._base_url or self.settings.API_BASE_URL).rstrip("/")

    # ===========================================
    # Users
    # ===========================================

    async def list_assignable_users(self) -> List[User]:
        data = await self._request("GET", "/users/assignable")
        return self._parse(lambda: [User(**user) for user in data])

    # ===========================================
    # Templates
    # ===========================================

    async def get_templates_by_category(self) -> Dict[str, List[ProposalTemplate]]:
        data = await self._request("GET", "/proposal-templates/by-category")
        return self._parse(lambda: {
            category: [ProposalTemplate(**template) for template in templates]
            for category, templates in data.items()
        })

    async def get_template_for_service(self, service_type: ServiceType) -> Optional[ProposalTemplate]:
        """Active template for a service type, None when there is none."""
        template_type = template_type_for(service_type)
        try:
            data = await self._request("GET", f"/proposal-templates/type/{template_type.value}")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return self._parse(lambda: ProposalTemplate(**data))

    async def get_default_template(self) -> Optional[ProposalTemplate]:
        try:
            data = await self._request("GET", "/proposal-templates/default")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return self._parse(lambda: ProposalTemplate(**data))

    # ===========================================
    # Proposals
    # ===========================================

    async def generate_proposal_preview(
        self,
        draft: ProposalDraft,
        inquiry_id: Optional[str] = None,
        template_id: Optional[str] = None,
        client_email: Optional[str] = None,
    ) -> PreviewResult:
        """Render a draft into proposal HTML without persisting anything."""
        body = PreviewRequest(
            draft=draft,
            inquiry_id=inquiry_id,
            template_id=template_id,
            client_email=client_email,
        )
        data = await self._request("POST", "/proposals/preview", json=body.model_dump(mode="json"))
        return self._parse(lambda: PreviewResult(**data))

    async def create_proposal(self, request: ProposalCreateRequest) -> ProposalRecord:
        data = await self._request("POST", "/proposals", json=request.model_dump(mode="json"))
        return self._parse(lambda: ProposalRecord(**data))

    async def update_proposal(self, proposal_id: str, request: ProposalUpdateRequest) -> ProposalRecord:
        data = await self._request(
            "PUT",
            f"/proposals/{proposal_id}",
            json=request.model_dump(mode="json", exclude_none=True),
        )
        return self._parse(lambda: ProposalRecord(**data))

    async def get_proposal(self, proposal_id: str) -> ProposalRecord:
        data = await self._request("GET", f"/proposals/{proposal_id}")
        return self._parse(lambda: ProposalRecord(**data))

    # ===========================================
    # Public Contract Endpoints
    # ===========================================

    async def get_contract_status(self, contract_id: str, token: str) -> ContractStatusView:
        data = await self._request(
            "GET",
            f"/contracts/public/{contract_id}/status",
            params={"token": token},
        )
        return self._parse(lambda: ContractStatusView(**data))

    async def submit_signed_contract(
        self,
        contract_id: str,
        token: str,
        file: UploadCandidate,
    ) -> SubmissionResult:
        data = await self._request(
            "POST",
            f"/contracts/public/{contract_id}/submit",
            params={"token": token},
            files={"signedContract": (file.filename, file.content, file.content_type)},
        )
        return self._parse(lambda: SubmissionResult(**data))

    # ===========================================
    # Transport
    # ===========================================

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.user_id:
            headers["X-User-Id"] = self.user_id

        timeout = self._timeout or self.settings.API_TIMEOUT_SECONDS

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException:
            logger.error(f"API timeout: {method} {path}")
            raise ApiError("The server took too long to respond")
        except httpx.HTTPError as e:
            logger.error(f"API request failed: {method} {path}: {e}")
            raise ApiError(str(e) or "Network error")

        if response.status_code >= 400:
            raise self._error_from(response)

        try:
            return response.json()
        except ValueError:
            logger.error(f"API returned a non-JSON body: {method} {path} ({response.status_code})")
            raise ApiError(UNEXPECTED_RESPONSE_MESSAGE, status_code=response.status_code)

    def _parse(self, build: Callable[[], Any]) -> Any:
        """Build response models; a body of the wrong shape is an ApiError."""
        try:
            return build()
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"API response did not match the expected shape: {e}")
            raise ApiError(UNEXPECTED_RESPONSE_MESSAGE)

    def _error_from(self, response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}

        if not isinstance(body, dict):
            body = {}

        detail = body.get("detail")
        message = (
            (detail if isinstance(detail, str) else None)
            or body.get("message")
            or body.get("error")
            or response.text
            or f"Request failed with status {response.status_code}"
        )

        logger.warning(f"API error {response.status_code}: {message}")

        if response.status_code == 422 and isinstance(body.get("errors"), list):
            errors = [FieldError(**error) for error in body["errors"]]
            return ServerValidationError(message, errors)

        return ApiError(message, status_code=response.status_code)
