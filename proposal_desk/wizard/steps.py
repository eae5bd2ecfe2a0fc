"""Wizard steps - definitions, per-step validators and the step indicator."""

from typing import Callable, Dict, List
from pydantic import BaseModel

from proposal_desk.core.exceptions import FieldError
from proposal_desk.models.catalog import is_available
from proposal_desk.models.proposal import ProposalDraft


class StepDefinition(BaseModel):
    id: int
    title: str
    description: str


STEPS: List[StepDefinition] = [
    StepDefinition(id=1, title="Service Type", description="Select the type of service"),
    StepDefinition(id=2, title="Client Info", description="Enter client details"),
    StepDefinition(id=3, title="Service Details", description="Configure service specifics"),
    StepDefinition(id=4, title="Pricing", description="Set rates and pricing"),
    StepDefinition(id=5, title="Terms", description="Terms & conditions"),
]

TOTAL_STEPS = len(STEPS)

# Required client info fields and the message shown next to each
REQUIRED_CLIENT_FIELDS: Dict[str, str] = {
    "client_name": "Recipient name is required",
    "client_company": "Company name is required",
    "client_address": "Address is required",
}


# ===========================================
# Validators
# ===========================================

def client_info_errors(draft: ProposalDraft) -> List[FieldError]:
    """Inline errors for the client info step."""
    errors = []
    for field, message in REQUIRED_CLIENT_FIELDS.items():
        value = getattr(draft.client_info, field) or ""
        if not value.strip():
            errors.append(FieldError(field=field, message=message))
    return errors


def service_type_is_valid(draft: ProposalDraft) -> bool:
    return draft.service_type is not None and is_available(draft.service_type)


def client_info_is_valid(draft: ProposalDraft) -> bool:
    return not client_info_errors(draft)


def always_valid(draft: ProposalDraft) -> bool:
    """Service details, pricing and terms accept whatever was entered."""
    return True


STEP_VALIDATORS: Dict[int, Callable[[ProposalDraft], bool]] = {
    1: service_type_is_valid,
    2: client_info_is_valid,
    3: always_valid,
    4: always_valid,
    5: always_valid,
}


def is_step_valid(step: int, draft: ProposalDraft) -> bool:
    validator = STEP_VALIDATORS.get(step)
    return bool(validator and validator(draft))


# ===========================================
# Step Indicator
# ===========================================

class StepView(BaseModel):
    """Render state of one step in the progress indicator."""
    id: int
    title: str
    description: str
    active: bool
    completed: bool
    clickable: bool
    connector_completed: bool
    has_connector: bool


def step_indicator(current_step: int) -> List[StepView]:
    """
    Build the progress indicator for the current step.

    A step is completed once the wizard moved past it and clickable when
    completed or active. The connector after a step is drawn completed
    under the same condition as the step itself.
    """
    views = []
    for step in STEPS:
        completed = current_step > step.id
        active = current_step == step.id
        views.append(StepView(
            id=step.id,
            title=step.title,
            description=step.description,
            active=active,
            completed=completed,
            clickable=completed or active,
            connector_completed=current_step > step.id,
            has_connector=step.id < TOTAL_STEPS,
        ))
    return views
