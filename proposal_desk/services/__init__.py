"""Services module - backend business logic."""

from proposal_desk.services.contract_service import ContractService, contract_service
from proposal_desk.services.proposal_service import ProposalService, proposal_service
from proposal_desk.services.template_renderer import TemplateRenderer, template_renderer

__all__ = [
    "ContractService",
    "contract_service",
    "ProposalService",
    "proposal_service",
    "TemplateRenderer",
    "template_renderer",
]
