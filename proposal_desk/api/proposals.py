"""Proposal API Routes - preview, persistence and PDF export."""

import logging
from typing import Optional
from fastapi import APIRouter, Header, HTTPException, Response

from proposal_desk.core.exceptions import AppError
from proposal_desk.models import (
    PreviewRequest,
    PreviewResult,
    ProposalCreateRequest,
    ProposalRecord,
    ProposalUpdateRequest,
)
from proposal_desk.services.proposal_service import proposal_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proposals", tags=["proposals"])


@router.post(
    "/preview",
    response_model=PreviewResult,
    summary="Render a proposal draft"
)
async def preview_proposal(body: PreviewRequest) -> PreviewResult:
    """
    Render a draft through its template without storing anything.

    Returns 422 with ``errors`` when required draft fields are missing or
    the service type has no template.
    """
    try:
        logger.info(f"Preview requested for inquiry {body.inquiry_id or 'n/a'}")
        return await proposal_service.preview(body)

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Preview error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate preview: {str(e)}")


@router.post(
    "",
    response_model=ProposalRecord,
    status_code=201,
    summary="Create a pending proposal"
)
async def create_proposal(
    body: ProposalCreateRequest,
    x_user_id: Optional[str] = Header(None)
) -> ProposalRecord:
    try:
        record = await proposal_service.create(body, x_user_id)
        logger.info(f"Proposal {record.proposal_number} created for inquiry {body.inquiry_id}")
        return record

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Create proposal error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to create proposal: {str(e)}")


@router.get("/{proposal_id}", response_model=ProposalRecord)
async def get_proposal(proposal_id: str) -> ProposalRecord:
    try:
        return await proposal_service.get(proposal_id)

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Get proposal error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load proposal: {str(e)}")


@router.put(
    "/{proposal_id}",
    response_model=ProposalRecord,
    summary="Update or revise a proposal"
)
async def update_proposal(
    proposal_id: str,
    body: ProposalUpdateRequest,
    x_user_id: Optional[str] = Header(None)
) -> ProposalRecord:
    try:
        return await proposal_service.update(proposal_id, body, x_user_id)

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Update proposal error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update proposal: {str(e)}")


@router.get("/{proposal_id}/pdf", summary="Download the proposal as PDF")
async def download_proposal_pdf(proposal_id: str) -> Response:
    try:
        pdf_bytes, filename = await proposal_service.render_pdf(proposal_id)
        return Response(
            content=pdf_bytes,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"PDF export error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to export PDF: {str(e)}")
