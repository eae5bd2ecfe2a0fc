"""Proposal template API Routes."""

import logging
from typing import Dict, List
from fastapi import APIRouter

from proposal_desk.models import ProposalTemplate, TemplateType
from proposal_desk.services.proposal_service import proposal_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proposal-templates", tags=["templates"])


@router.get("/by-category", response_model=Dict[str, List[ProposalTemplate]])
async def templates_by_category() -> Dict[str, List[ProposalTemplate]]:
    """Active templates grouped by category."""
    return await proposal_service.templates_by_category()


@router.get("/type/{template_type}", response_model=ProposalTemplate)
async def template_by_type(template_type: TemplateType) -> ProposalTemplate:
    return await proposal_service.template_for_type(template_type.value)


@router.get("/default", response_model=ProposalTemplate)
async def default_template() -> ProposalTemplate:
    return await proposal_service.default_template()
