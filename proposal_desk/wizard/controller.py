"""
Proposal builder wizard.

One controller owns the draft, the step pointer and the generated
document. Step components read and update the draft through it; the
controller talks to the backend through ProposalApiClient and reports
outcomes through a Notifier.

States:
    STEP_1 .. STEP_5 -> GENERATING -> REVIEWING
    GENERATING -> STEP_5 on failure
    REVIEWING -> STEP_5 via back_to_edit()
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from proposal_desk.core.config import map_inquiry_to_client_info
from proposal_desk.core.exceptions import ApiError, FieldError, ServerValidationError
from proposal_desk.editor.document import EditorDocument
from proposal_desk.editor.scoping import extract_styles
from proposal_desk.integrations.api_client import ProposalApiClient
from proposal_desk.models import (
    ClientInfo,
    InquiryRecord,
    Pricing,
    ProposalCreateRequest,
    ProposalData,
    ProposalDraft,
    ProposalRecord,
    ProposalTemplate,
    ProposalUpdateRequest,
    ServiceDetails,
    ServiceLine,
    ServiceType,
    TemplateMeta,
    Terms,
    WizardState,
)
from proposal_desk.models.catalog import is_available
from proposal_desk.wizard.notifications import Notifier
from proposal_desk.wizard.steps import (
    TOTAL_STEPS,
    StepView,
    client_info_errors,
    is_step_valid,
    step_indicator,
)

logger = logging.getLogger(__name__)

STEP_STATES = {WizardState.for_step(step) for step in range(1, TOTAL_STEPS + 1)}


class NavigationFooter(BaseModel):
    """Render state of the Previous / Next / Generate buttons."""
    step_label: str
    show_previous: bool
    is_last_step: bool
    next_label: str
    next_enabled: bool


class WizardController:
    """Explicit state container for one proposal being built from an inquiry."""

    def __init__(self, api: ProposalApiClient, notifier: Optional[Notifier] = None):
        self.api = api
        self.notifier = notifier or Notifier()
        self._preview_request_id = 0
        self._clear()

    def _clear(self) -> None:
        self.draft = ProposalDraft()
        self.current_step = 1
        self.highest_step_reached = 1
        self.state = WizardState.STEP_1
        self.inquiry: Optional[InquiryRecord] = None
        self.template: Optional[ProposalTemplate] = None
        self.template_meta: Optional[TemplateMeta] = None
        self.generated_html: Optional[str] = None
        self.document: Optional[EditorDocument] = None
        self.field_errors: Dict[str, str] = {}
        self.server_errors: List[FieldError] = []
        self.has_unsaved_editor_changes = False
        self._preview_in_flight = False
        self._submitting = False

    # ===========================================
    # Derived State
    # ===========================================

    @property
    def in_step_sequence(self) -> bool:
        return self.state in STEP_STATES

    @property
    def is_generating(self) -> bool:
        return self._preview_in_flight

    @property
    def is_revision(self) -> bool:
        return bool(self.inquiry and self.inquiry.is_revision)

    @property
    def can_proceed(self) -> bool:
        return is_step_valid(self.current_step, self.draft)

    @property
    def can_generate(self) -> bool:
        return (
            self.state == WizardState.STEP_5
            and not self._preview_in_flight
            and self.template is not None
            and self.draft.service_type is not None
            and is_available(self.draft.service_type)
        )

    def step_views(self) -> List[StepView]:
        return step_indicator(self.current_step)

    def footer(self) -> NavigationFooter:
        is_last = self.current_step == TOTAL_STEPS
        if self._preview_in_flight:
            label, enabled = "Generating...", False
        elif is_last:
            label, enabled = "Generate Preview", self.can_generate
        else:
            label, enabled = "Next", self.can_proceed

        return NavigationFooter(
            step_label=f"Step {self.current_step} of {TOTAL_STEPS}",
            show_previous=self.current_step > 1,
            is_last_step=is_last,
            next_label=label,
            next_enabled=enabled and self.in_step_sequence,
        )

    # ===========================================
    # Loading
    # ===========================================

    async def load(self, inquiry: InquiryRecord) -> None:
        """Open the wizard for an inquiry, pre-filling what it already knows."""
        self._clear()
        self.inquiry = inquiry
        self.draft.client_info = ClientInfo(**map_inquiry_to_client_info(inquiry.model_dump()))

        if inquiry.service_type and is_available(inquiry.service_type):
            self.draft.service_type = inquiry.service_type

        await self.load_template()

        if inquiry.is_revision:
            await self._load_rejected_proposal(inquiry.proposal_id)

    async def load_template(self) -> Optional[ProposalTemplate]:
        """Load the template for the selected service, falling back to the default one."""
        try:
            template = None
            if self.draft.service_type is not None:
                template = await self.api.get_template_for_service(self.draft.service_type)
            if template is None:
                template = await self.api.get_default_template()
        except ApiError as e:
            logger.error(f"Failed to load proposal template: {e.message}")
            self.notifier.error(e.message or "Failed to load proposal template")
            return None

        if template is None:
            logger.warning("No proposal template available")
            return None

        self.template = template
        self.draft.service_details = ServiceDetails.from_template_config(template.template_config)
        logger.info(f"Loaded template {template.id} ({template.name})")
        return template

    async def _load_rejected_proposal(self, proposal_id: str) -> None:
        try:
            proposal = await self.api.get_proposal(proposal_id)
        except ApiError as e:
            self.notifier.error(e.message or "Failed to load the rejected proposal")
            return

        self._restore_from(proposal)
        reason = self.inquiry.proposal_rejection_reason
        self.notifier.info(
            f"Revising rejected proposal: {reason}" if reason else "Revising rejected proposal"
        )

    def _restore_from(self, proposal: ProposalRecord) -> None:
        data = proposal.proposal_data
        try:
            if data.get("service_type"):
                self.draft.service_type = ServiceType(data["service_type"])
            if data.get("client_info"):
                self.draft.client_info = ClientInfo(**data["client_info"])
            if data.get("terms"):
                self.draft.terms = Terms(**data["terms"])
            if data.get("service_details"):
                self.draft.service_details = ServiceDetails(**data["service_details"])
            if data.get("services"):
                tax_rate = (data.get("pricing") or {}).get("tax_rate", self.draft.pricing.tax_rate)
                discount = (data.get("pricing") or {}).get("discount", 0)
                self.draft.pricing = Pricing(
                    services=[ServiceLine(**line) for line in data["services"]],
                    tax_rate=tax_rate,
                    discount=discount,
                )
        except (PydanticValidationError, ValueError) as e:
            logger.warning(f"Stored proposal {proposal.id} could not be fully restored: {e}")

    # ===========================================
    # Draft Updates
    # ===========================================

    async def select_service_type(self, value: Any) -> bool:
        """
        Select a catalog entry on step 1.

        Unavailable entries are ignored. Unknown values raise ValueError.
        """
        service_type = ServiceType(value)
        if not is_available(service_type):
            logger.debug(f"Ignoring unavailable service type: {service_type.value}")
            return False

        self.draft.service_type = service_type
        self.field_errors.pop("service_type", None)
        await self.load_template()
        return True

    def update_client_info(self, **changes: Any) -> bool:
        return self._update_slice("client_info", ClientInfo, changes)

    def update_service_details(self, **changes: Any) -> bool:
        return self._update_slice("service_details", ServiceDetails, changes)

    def update_pricing(self, **changes: Any) -> bool:
        return self._update_slice("pricing", Pricing, changes)

    def update_terms(self, **changes: Any) -> bool:
        return self._update_slice("terms", Terms, changes)

    def _update_slice(self, name: str, model: type, changes: Dict[str, Any]) -> bool:
        current = getattr(self.draft, name)
        merged = {**current.model_dump(), **changes}
        try:
            updated = model(**merged)
        except PydanticValidationError as e:
            for error in e.errors():
                field = ".".join(str(part) for part in error["loc"])
                self.field_errors[field] = error["msg"]
            return False

        setattr(self.draft, name, updated)
        for field in changes:
            self.field_errors.pop(field, None)
        return True

    # ===========================================
    # Navigation
    # ===========================================

    def go_next(self) -> bool:
        """Advance one step when the current step is valid."""
        if not self.in_step_sequence or self.current_step >= TOTAL_STEPS:
            return False

        if not self.can_proceed:
            self._show_step_errors()
            return False

        self.current_step += 1
        self.highest_step_reached = max(self.highest_step_reached, self.current_step)
        self.state = WizardState.for_step(self.current_step)
        return True

    def go_previous(self) -> bool:
        if not self.in_step_sequence or self.current_step <= 1:
            return False

        self.current_step -= 1
        self.state = WizardState.for_step(self.current_step)
        return True

    def jump_to_step(self, step: int) -> bool:
        """Jump to a completed step or the current one; anything else is ignored."""
        if not self.in_step_sequence or not 1 <= step <= self.highest_step_reached:
            return False

        self.current_step = step
        self.state = WizardState.for_step(step)
        return True

    def _show_step_errors(self) -> None:
        if self.current_step == 1:
            self.field_errors["service_type"] = "Please select an available service type"
        elif self.current_step == 2:
            for error in client_info_errors(self.draft):
                self.field_errors[error.field] = error.message

    # ===========================================
    # Preview & Review
    # ===========================================

    async def generate_preview(self) -> bool:
        """
        Render the draft through the backend and open it in the editor.

        Responses are matched against the latest request id; anything
        older is dropped.
        """
        if not self.can_generate:
            return False

        self._preview_request_id += 1
        request_id = self._preview_request_id
        self._preview_in_flight = True
        self.state = WizardState.GENERATING
        self.server_errors = []
        result = None

        try:
            result = await self.api.generate_proposal_preview(
                self.draft,
                inquiry_id=self.inquiry.id if self.inquiry else None,
                template_id=self.template.id,
                client_email=self.inquiry.email if self.inquiry else None,
            )
        except ServerValidationError as e:
            if request_id == self._preview_request_id:
                self.server_errors = e.errors
                self._generation_failed(e.message or "Please fix the highlighted fields")
            return False
        except ApiError as e:
            if request_id == self._preview_request_id:
                self._generation_failed(e.message or "Failed to generate proposal preview")
            return False
        finally:
            # unexpected errors still propagate, but never leave the wizard generating
            if result is None and request_id == self._preview_request_id and self._preview_in_flight:
                self._generation_failed("Failed to generate proposal preview")

        if request_id != self._preview_request_id:
            logger.info(f"Discarding stale preview response #{request_id}")
            return False

        self._preview_in_flight = False
        self.generated_html = result.html
        self.template_meta = result.template_meta
        self._open_document(result.html)
        self.state = WizardState.REVIEWING
        logger.info(f"Preview generated with template {result.template_meta.id}")
        return True

    def _generation_failed(self, message: str) -> None:
        self._preview_in_flight = False
        self.state = WizardState.STEP_5
        self.notifier.error(message)

    def _open_document(self, html: str) -> None:
        styles = extract_styles(self.template.html_template) if self.template else None

        if self.document is None:
            self.document = EditorDocument(
                html,
                template_styles=styles,
                on_unsaved_change=self._on_unsaved_change,
            )
            return

        # regenerated: replacing local edits is intended here
        self.document.template_styles = styles
        self.document.force_replace(html)

    def _on_unsaved_change(self, has_unsaved: bool) -> None:
        self.has_unsaved_editor_changes = has_unsaved

    def back_to_edit(self) -> bool:
        """Leave review mode for the terms step, keeping the draft and document."""
        if self.state != WizardState.REVIEWING:
            return False

        self.current_step = TOTAL_STEPS
        self.state = WizardState.STEP_5
        return True

    # ===========================================
    # Submission
    # ===========================================

    def build_proposal_data(self) -> ProposalData:
        pricing = self.draft.pricing
        return ProposalData(
            service_type=self.draft.service_type,
            client_info=self.draft.client_info,
            services=pricing.effective_services(),
            pricing=pricing.calculate(),
            terms=self.draft.terms,
            service_details=self.draft.service_details.enabled_fields(),
            edited_html_content=self.document.saved,
            edited_json_content=None,
        )

    async def submit(self) -> Optional[ProposalRecord]:
        """Persist the reviewed proposal; a rejected one is revised in place."""
        if self.state != WizardState.REVIEWING or self.document is None or self._submitting:
            return None

        if self.inquiry is None:
            self.notifier.error("Open the wizard from an inquiry before submitting")
            return None

        if self.document.has_unsaved_changes:
            self.notifier.info("Unsaved editor changes are not included; save to keep them")

        try:
            data = self.build_proposal_data()
        except PydanticValidationError as e:
            for error in e.errors():
                field = ".".join(str(part) for part in error["loc"])
                self.field_errors[field] = error["msg"]
            logger.warning(f"Proposal data failed local validation: {e.error_count()} error(s)")
            self.notifier.error(
                "The proposal document is empty"
                if "edited_html_content" in self.field_errors else
                "Please fix the proposal before submitting"
            )
            return None

        self._submitting = True
        revision = self.is_revision
        template_id = self.template.id if self.template else None

        try:
            if revision:
                record = await self.api.update_proposal(
                    self.inquiry.proposal_id,
                    ProposalUpdateRequest(template_id=template_id, proposal_data=data),
                )
            else:
                record = await self.api.create_proposal(
                    ProposalCreateRequest(
                        inquiry_id=self.inquiry.id,
                        template_id=template_id,
                        proposal_data=data,
                    )
                )
        except ServerValidationError as e:
            self.server_errors = e.errors
            self.notifier.error(e.message or "The proposal could not be saved")
            return None
        except ApiError as e:
            self.notifier.error(e.message or "Failed to save proposal")
            return None
        finally:
            self._submitting = False

        self.notifier.success(
            "Proposal revised and resubmitted for approval"
            if revision else
            "Proposal created and sent for approval"
        )
        self.cancel()
        return record

    def cancel(self) -> None:
        """Discard the draft; a preview still in flight is ignored when it lands."""
        self._preview_request_id += 1
        self._clear()
