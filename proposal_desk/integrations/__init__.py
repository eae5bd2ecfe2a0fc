"""Integrations module - REST client and PDF rendering."""

from proposal_desk.integrations.api_client import ProposalApiClient
from proposal_desk.integrations.pdf import PDFGenerator, pdf_generator

__all__ = [
    "ProposalApiClient",
    "PDFGenerator",
    "pdf_generator",
]
