"""Public contract API Routes - token-gated, no session required."""

import logging
from typing import Optional
from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile

from proposal_desk.core.config import get_settings
from proposal_desk.core.exceptions import AppError
from proposal_desk.models import ContractStatusView, SubmissionResult, UploadCandidate
from proposal_desk.services.contract_service import contract_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts/public", tags=["contracts"])


@router.get("/{contract_id}/status", response_model=ContractStatusView)
async def contract_status(
    contract_id: str,
    token: Optional[str] = Query(None)
) -> ContractStatusView:
    """Details shown on the client's confirmation screen."""
    try:
        return await contract_service.public_status(contract_id, token)

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Contract status error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to load contract: {str(e)}")


@router.post("/{contract_id}/submit", response_model=SubmissionResult)
async def submit_signed_contract(
    contract_id: str,
    request: Request,
    token: Optional[str] = Query(None),
    signed_contract: Optional[UploadFile] = File(None, alias="signedContract")
) -> SubmissionResult:
    """
    Accept the client's signed PDF.

    The upload is read up to one byte past the limit so an oversize file is
    detected without buffering all of it.
    """
    try:
        candidate = None
        if signed_contract is not None:
            limit = get_settings().MAX_SIGNED_CONTRACT_BYTES
            content = await signed_contract.read(limit + 1)
            candidate = UploadCandidate(
                filename=signed_contract.filename or "signed-contract.pdf",
                content_type=signed_contract.content_type or "",
                size=len(content),
                content=content,
            )

        client_ip = request.client.host if request.client else None
        result = await contract_service.submit_signed(contract_id, token, candidate, client_ip)
        return result

    except (HTTPException, AppError):
        raise
    except Exception as e:
        logger.error(f"Signed contract submission error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to submit contract: {str(e)}")
