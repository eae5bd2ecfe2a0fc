"""Models package - All Pydantic models organized by domain."""

from proposal_desk.models.enums import (
    ServiceType,
    TemplateType,
    ProposalStatus,
    ContractStatus,
    UserRole,
    WizardState,
    UploadStage,
)
from proposal_desk.models.catalog import ServiceOffering, SERVICE_CATALOG
from proposal_desk.models.proposal import (
    ClientInfo,
    Terms,
    ServiceLine,
    Pricing,
    PricingSummary,
    ServiceDetails,
    ProposalDraft,
    ProposalTemplate,
    TemplateMeta,
    PreviewResult,
    PreviewRequest,
    ProposalData,
    ProposalCreateRequest,
    ProposalUpdateRequest,
    ProposalRecord,
    InquiryRecord,
)
from proposal_desk.models.contract import (
    ContractRecord,
    ContractStatusView,
    SubmissionResult,
    UploadCandidate,
)
from proposal_desk.models.user import User

__all__ = [
    # Enums
    "ServiceType",
    "TemplateType",
    "ProposalStatus",
    "ContractStatus",
    "UserRole",
    "WizardState",
    "UploadStage",
    # Catalog
    "ServiceOffering",
    "SERVICE_CATALOG",
    # Proposal models
    "ClientInfo",
    "Terms",
    "ServiceLine",
    "Pricing",
    "PricingSummary",
    "ServiceDetails",
    "ProposalDraft",
    "ProposalTemplate",
    "TemplateMeta",
    "PreviewResult",
    "PreviewRequest",
    "ProposalData",
    "ProposalCreateRequest",
    "ProposalUpdateRequest",
    "ProposalRecord",
    "InquiryRecord",
    # Contract models
    "ContractRecord",
    "ContractStatusView",
    "SubmissionResult",
    "UploadCandidate",
    # Users
    "User",
]
