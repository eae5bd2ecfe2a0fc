"""Proposal-related models - draft slices, templates and persisted records."""

import json
from datetime import date, datetime, timedelta
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator

from proposal_desk.core.config import get_settings
from proposal_desk.models.enums import ServiceType, TemplateType, ProposalStatus


# ===========================================
# Draft Slices
# ===========================================

class ClientInfo(BaseModel):
    """Recipient details collected on the client info step."""
    client_name: str = Field("", description="Person the proposal is addressed to")
    client_position: str = Field("", description="Recipient's position")
    client_company: str = Field("", description="Company name")
    client_address: str = Field("", description="Complete address")
    proposal_date: date = Field(default_factory=date.today, description="Defaults to today")
    validity_days: int = Field(
        default_factory=lambda: get_settings().DEFAULT_VALIDITY_DAYS,
        ge=1,
        description="How long the proposal is valid"
    )

    @property
    def validity_date(self) -> date:
        return self.proposal_date + timedelta(days=self.validity_days)


class Terms(BaseModel):
    """Terms & conditions step."""
    payment_terms: str = Field(default_factory=lambda: get_settings().DEFAULT_PAYMENT_TERMS)
    schedule: str = ""
    notes: str = ""


class ServiceLine(BaseModel):
    """One billable line of the pricing table."""
    name: str = ""
    description: str = ""
    quantity: float = Field(1, ge=0)
    unit_price: float = Field(0, ge=0)

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price


class PricingSummary(BaseModel):
    """Computed totals for a proposal."""
    subtotal: float
    discount: float
    tax: float
    total: float
    tax_rate: float


PLACEHOLDER_SERVICES: List[ServiceLine] = [
    ServiceLine(
        name="Waste Collection Service",
        description="Standard waste collection and disposal service",
        quantity=1,
        unit_price=5000,
    )
]


class Pricing(BaseModel):
    """Rate structure of the pricing step."""
    services: List[ServiceLine] = Field(default_factory=lambda: [ServiceLine()])
    tax_rate: float = Field(default_factory=lambda: get_settings().DEFAULT_TAX_RATE, ge=0, le=100)
    discount: float = Field(0, ge=0)

    def effective_services(self) -> List[ServiceLine]:
        """Named service lines, or the placeholder line when none were entered."""
        named = [line for line in self.services if line.name.strip()]
        return named or [line.model_copy() for line in PLACEHOLDER_SERVICES]

    def calculate(self) -> PricingSummary:
        subtotal = sum(line.subtotal for line in self.effective_services())
        after_discount = subtotal - self.discount
        tax = after_discount * (self.tax_rate / 100)
        return PricingSummary(
            subtotal=round(subtotal, 2),
            discount=round(self.discount, 2),
            tax=round(tax, 2),
            total=round(after_discount + tax, 2),
            tax_rate=self.tax_rate,
        )


class LaborCrew(BaseModel):
    number_of_workers: int = 0
    days_required: int = 0
    rate_per_day: float = 0


class EquipmentLine(BaseModel):
    name: str
    quantity: int = Field(1, ge=1)
    hours: float = Field(0, ge=0)
    rate: float = Field(0, ge=0)


# Template config flag -> (field name, default factory)
TEMPLATE_FIELD_DEFAULTS: Dict[str, tuple] = {
    # Compactor hauling
    "has_waste_allowance": ("waste_allowance", lambda: 0),
    "has_excess_rate": ("excess_rate", lambda: 0),
    # Fixed monthly
    "has_contract_duration": ("contract_duration", lambda: 12),
    "has_monthly_rate": ("monthly_rate", lambda: 0),
    "has_pickup_schedule": ("pickup_schedule", lambda: ""),
    # Clearing project
    "has_equipment": ("equipment", list),
    "has_labor_crew": ("labor_crew", LaborCrew),
    "has_project_duration": ("project_duration", lambda: ""),
    # One time hauling
    "has_truck_type": ("truck_type", lambda: ""),
    "has_number_of_trips": ("number_of_trips", lambda: 1),
    "has_rate_per_trip": ("rate_per_trip", lambda: 0),
    # Long term
    "has_rate_per_kg": ("rate_per_kg", lambda: 0),
    "has_minimum_charge": ("minimum_monthly_charge", lambda: 0),
    "has_weighing_method": ("weighing_method", lambda: ""),
    # Recyclables
    "has_recyclable_types": ("recyclable_types", list),
    "has_purchase_rates": ("purchase_rates", dict),
    # Hazardous waste
    "requires_manifest": ("manifest_number", lambda: ""),
    "requires_license": ("transport_license", lambda: ""),
}


class ServiceDetails(BaseModel):
    """Service-type-specific fields; only those the template enables are set."""
    waste_allowance: Optional[float] = None
    excess_rate: Optional[float] = None
    contract_duration: Optional[int] = None
    monthly_rate: Optional[float] = None
    pickup_schedule: Optional[str] = None
    equipment: Optional[List[EquipmentLine]] = None
    labor_crew: Optional[LaborCrew] = None
    project_duration: Optional[str] = None
    truck_type: Optional[str] = None
    number_of_trips: Optional[int] = None
    rate_per_trip: Optional[float] = None
    rate_per_kg: Optional[float] = None
    minimum_monthly_charge: Optional[float] = None
    weighing_method: Optional[str] = None
    recyclable_types: Optional[List[str]] = None
    purchase_rates: Optional[Dict[str, float]] = None
    manifest_number: Optional[str] = None
    transport_license: Optional[str] = None

    @classmethod
    def from_template_config(cls, config: Optional[Dict[str, Any]]) -> "ServiceDetails":
        """Initialize the fields a template config enables, with their defaults."""
        fields: Dict[str, Any] = {}
        for flag, (field_name, default) in TEMPLATE_FIELD_DEFAULTS.items():
            if config and config.get(flag):
                fields[field_name] = default()
        return cls(**fields)

    def enabled_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ProposalDraft(BaseModel):
    """Aggregate, client-held proposal state assembled across wizard steps."""
    service_type: Optional[ServiceType] = None
    client_info: ClientInfo = Field(default_factory=ClientInfo)
    service_details: ServiceDetails = Field(default_factory=ServiceDetails)
    pricing: Pricing = Field(default_factory=Pricing)
    terms: Terms = Field(default_factory=Terms)


# ===========================================
# Templates
# ===========================================

class ProposalTemplate(BaseModel):
    """Backend-defined document skeleton keyed by template type."""
    id: str
    name: str
    description: Optional[str] = None
    html_template: str = ""
    template_type: Optional[TemplateType] = None
    category: Optional[str] = None
    template_config: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    is_default: bool = False

    @field_validator("template_config", mode="before")
    @classmethod
    def parse_config(cls, v: Any) -> Dict[str, Any]:
        """Template config is stored as JSON text."""
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            return json.loads(v)
        return v


class TemplateMeta(BaseModel):
    """Which template rendered a preview."""
    id: str
    name: str
    template_type: Optional[TemplateType] = None


class PreviewResult(BaseModel):
    """Rendered proposal document returned by the preview endpoint."""
    html: str
    template_meta: TemplateMeta


class PreviewRequest(BaseModel):
    """Body of POST /proposals/preview."""
    draft: ProposalDraft
    inquiry_id: Optional[str] = None
    template_id: Optional[str] = None
    client_email: Optional[str] = None


# ===========================================
# Persisted Proposals
# ===========================================

class ProposalData(BaseModel):
    """Payload stored in the proposal_data column."""
    service_type: Optional[ServiceType] = None
    client_info: ClientInfo
    services: List[ServiceLine] = Field(default_factory=list)
    pricing: PricingSummary
    terms: Terms = Field(default_factory=Terms)
    service_details: Dict[str, Any] = Field(default_factory=dict)
    edited_html_content: str = Field(..., min_length=1, description="Edited proposal document")
    edited_json_content: Optional[Any] = None


class ProposalCreateRequest(BaseModel):
    inquiry_id: str
    template_id: Optional[str] = None
    proposal_data: ProposalData


class ProposalUpdateRequest(BaseModel):
    template_id: Optional[str] = None
    proposal_data: Optional[ProposalData] = None


class ProposalRecord(BaseModel):
    """Proposal row from the database."""
    id: str
    proposal_number: str
    inquiry_id: str
    template_id: Optional[str] = None
    requested_by: Optional[str] = None
    proposal_data: Dict[str, Any] = Field(default_factory=dict)
    status: ProposalStatus = ProposalStatus.PENDING
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("proposal_data", mode="before")
    @classmethod
    def parse_data(cls, v: Any) -> Dict[str, Any]:
        if isinstance(v, str):
            return json.loads(v)
        return v or {}


class InquiryRecord(BaseModel):
    """Inquiry row the wizard is opened from."""
    id: str
    name: str = ""
    email: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None
    address: Optional[str] = None
    service_type: Optional[ServiceType] = None
    proposal_id: Optional[str] = None
    proposal_status: Optional[ProposalStatus] = None
    proposal_rejection_reason: Optional[str] = None

    @property
    def is_revision(self) -> bool:
        """Whether opening the wizard revises a rejected proposal."""
        return bool(self.proposal_id) and self.proposal_status == ProposalStatus.REJECTED
