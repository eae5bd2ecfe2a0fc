"""Proposal Service - templates, previews, persistence and PDF export."""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from proposal_desk.core.database import db_service
from proposal_desk.core.exceptions import (
    AppError,
    BadRequestError,
    FieldError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from proposal_desk.integrations.pdf import pdf_generator
from proposal_desk.models import (
    PreviewRequest,
    PreviewResult,
    ProposalCreateRequest,
    ProposalDraft,
    ProposalRecord,
    ProposalStatus,
    ProposalTemplate,
    ProposalUpdateRequest,
    ServiceType,
    TemplateMeta,
)
from proposal_desk.models.catalog import is_available, template_type_for
from proposal_desk.services.template_renderer import template_renderer
from proposal_desk.wizard.steps import client_info_errors

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = {ProposalStatus.PENDING, ProposalStatus.REJECTED}


class ProposalService:
    """
    Backend side of the proposal builder.

    Flow:
    1. Wizard loads the template for the chosen service type
    2. Draft is rendered through the template for review (nothing stored)
    3. The reviewed document is stored as a pending proposal
    4. A rejected proposal is revised in place and goes back to pending
    """

    # ===========================================
    # Templates
    # ===========================================

    async def templates_by_category(self) -> Dict[str, List[ProposalTemplate]]:
        grouped: Dict[str, List[ProposalTemplate]] = defaultdict(list)
        for template in await db_service.get_templates():
            grouped[template.category or "uncategorized"].append(template)
        return dict(grouped)

    async def template_for_type(self, template_type: str) -> ProposalTemplate:
        template = await db_service.get_template_by_type(template_type)
        if template is None:
            raise NotFoundError(f"No active template for type '{template_type}'")
        return template

    async def default_template(self) -> ProposalTemplate:
        template = await db_service.get_default_template()
        if template is None:
            raise NotFoundError("No default proposal template configured")
        return template

    async def resolve_template(
        self,
        template_id: Optional[str],
        service_type: Optional[ServiceType],
    ) -> Optional[ProposalTemplate]:
        """Explicit template, else the service type's template, else the default one."""
        if template_id:
            return await db_service.get_template(template_id)

        template = None
        if service_type is not None:
            template = await db_service.get_template_by_type(template_type_for(service_type).value)
        if template is None:
            template = await db_service.get_default_template()
        return template

    # ===========================================
    # Preview
    # ===========================================

    def validate_draft(self, draft: ProposalDraft) -> List[FieldError]:
        errors = []
        if draft.service_type is None:
            errors.append(FieldError(field="service_type", message="Service type is required"))
        elif not is_available(draft.service_type):
            errors.append(FieldError(
                field="service_type",
                message="No template is available for this service type"
            ))
        errors.extend(client_info_errors(draft))
        return errors

    async def preview(self, request: PreviewRequest) -> PreviewResult:
        """
        Render a draft without storing anything.

        Raises:
            ValidationError: Required draft fields are missing or no template applies
        """
        draft = request.draft
        errors = self.validate_draft(draft)
        if errors:
            raise ValidationError("Proposal draft is incomplete", errors)

        template = await self.resolve_template(request.template_id, draft.service_type)
        if template is None:
            field = "template_id" if request.template_id else "service_type"
            raise ValidationError(
                "No template found for this proposal",
                [FieldError(field=field, message="No template is available for this service type")]
            )

        html = template_renderer.render_draft(template, draft, client_email=request.client_email)
        return PreviewResult(
            html=html,
            template_meta=TemplateMeta(
                id=template.id,
                name=template.name,
                template_type=template.template_type,
            ),
        )

    # ===========================================
    # Persistence
    # ===========================================

    async def create(self, request: ProposalCreateRequest, user_id: Optional[str]) -> ProposalRecord:
        inquiry = await db_service.get_inquiry(request.inquiry_id)
        if inquiry is None:
            raise NotFoundError(f"Inquiry {request.inquiry_id} not found")

        if request.template_id:
            template = await db_service.get_template(request.template_id)
        else:
            template = await db_service.get_default_template()
        if template is None:
            raise NotFoundError("Proposal template not found")

        proposal_number = await db_service.next_number("proposal", "PROP")
        if proposal_number is None:
            raise StorageError("Failed to generate proposal number")

        record = await db_service.create_proposal({
            "proposal_number": proposal_number,
            "inquiry_id": inquiry.id,
            "template_id": template.id,
            "requested_by": user_id,
            "proposal_data": request.proposal_data.model_dump(mode="json"),
            "status": ProposalStatus.PENDING.value,
        })
        if record is None:
            raise StorageError("Failed to save proposal")

        linked = await db_service.update_inquiry(inquiry.id, {
            "proposal_id": record.id,
            "proposal_status": ProposalStatus.PENDING.value,
        })
        if not linked:
            logger.warning(f"Proposal {record.id} saved but inquiry {inquiry.id} was not linked")

        return record

    async def get(self, proposal_id: str) -> ProposalRecord:
        record = await db_service.get_proposal(proposal_id)
        if record is None:
            raise NotFoundError(f"Proposal {proposal_id} not found")
        return record

    async def update(
        self,
        proposal_id: str,
        request: ProposalUpdateRequest,
        user_id: Optional[str],
    ) -> ProposalRecord:
        """Edit a pending proposal, or revise a rejected one back to pending."""
        existing = await self.get(proposal_id)
        if existing.status not in EDITABLE_STATUSES:
            raise BadRequestError("Can only update pending or rejected proposals")

        updates = {}
        if request.proposal_data is not None:
            updates["proposal_data"] = request.proposal_data.model_dump(mode="json")
        if request.template_id:
            updates["template_id"] = request.template_id

        revising = existing.status == ProposalStatus.REJECTED
        if revising:
            updates["status"] = ProposalStatus.PENDING.value
            updates["rejection_reason"] = None

        if not updates:
            return existing

        record = await db_service.update_proposal(proposal_id, updates)
        if record is None:
            raise StorageError("Failed to update proposal")

        if revising:
            await db_service.update_inquiry(existing.inquiry_id, {
                "proposal_status": ProposalStatus.PENDING.value,
                "proposal_rejection_reason": None,
            })
            logger.info(f"Proposal {proposal_id} revised by {user_id or 'unknown user'}")

        return record

    # ===========================================
    # PDF
    # ===========================================

    async def render_pdf(self, proposal_id: str) -> Tuple[bytes, str]:
        """Render the stored document. Returns (pdf bytes, filename)."""
        record = await self.get(proposal_id)
        html = record.proposal_data.get("edited_html_content")
        if not html:
            raise BadRequestError("Proposal has no document to export")

        pdf_bytes = pdf_generator.html_to_pdf(html)
        if pdf_bytes is None:
            raise AppError("PDF generation failed")

        return pdf_bytes, f"{record.proposal_number}.pdf"


# Singleton instance
proposal_service = ProposalService()
