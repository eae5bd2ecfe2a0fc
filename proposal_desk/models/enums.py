"""Enumeration types for the proposal desk."""

from enum import Enum


class ServiceType(str, Enum):
    """Service offerings a proposal can be built for."""
    WASTE_COLLECTION = "waste_collection"
    HAZARDOUS = "hazardous"
    FIXED_MONTHLY = "fixed_monthly"
    CLEARING = "clearing"
    ONE_TIME = "one_time"
    LONG_TERM = "long_term"
    RECYCLABLES = "recyclables"


class TemplateType(str, Enum):
    """Proposal template families stored in the template table."""
    COMPACTOR_HAULING = "compactor_hauling"
    HAZARDOUS_WASTE = "hazardous_waste"
    FIXED_MONTHLY = "fixed_monthly"
    CLEARING_PROJECT = "clearing_project"
    ONE_TIME_HAULING = "one_time_hauling"
    LONG_TERM = "long_term"
    RECYCLABLES_PURCHASE = "recyclables_purchase"


class ProposalStatus(str, Enum):
    """Status progression for proposals through review and client response."""
    PENDING = "pending"
    APPROVED = "approved"
    DISAPPROVED = "disapproved"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class ContractStatus(str, Enum):
    """Contract request workflow."""
    PENDING_REQUEST = "pending_request"
    REQUESTED = "requested"
    READY_FOR_SALES = "ready_for_sales"
    SENT_TO_SALES = "sent_to_sales"
    SENT_TO_CLIENT = "sent_to_client"
    SIGNED = "signed"
    HARDBOUND_UPLOADED = "hardbound_uploaded"


class UserRole(str, Enum):
    """Roles of dashboard users."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    SALES = "sales"


class WizardState(str, Enum):
    """States of the proposal builder wizard."""
    STEP_1 = "step_1"
    STEP_2 = "step_2"
    STEP_3 = "step_3"
    STEP_4 = "step_4"
    STEP_5 = "step_5"
    GENERATING = "generating"
    REVIEWING = "reviewing"

    @classmethod
    def for_step(cls, step: int) -> "WizardState":
        return cls(f"step_{step}")


class UploadStage(str, Enum):
    """Stages of the client-facing signed contract upload page."""
    LOADING = "loading"
    CONFIRMATION = "confirmation"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"
