"""Service catalog - the offerings a proposal can be built for."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from proposal_desk.models.enums import ServiceType, TemplateType


class ServiceOffering(BaseModel):
    """One selectable card on the service type step."""
    value: ServiceType
    label: str
    icon: str = ""
    available: bool = Field(False, description="Whether a template is implemented")
    template_type: TemplateType

    class Config:
        frozen = True


SERVICE_CATALOG: List[ServiceOffering] = [
    ServiceOffering(
        value=ServiceType.WASTE_COLLECTION,
        label="Waste Collection (Compactor Hauling)",
        icon="🚛",
        template_type=TemplateType.COMPACTOR_HAULING,
    ),
    ServiceOffering(
        value=ServiceType.HAZARDOUS,
        label="Hazardous Waste Collection",
        icon="☢️",
        template_type=TemplateType.HAZARDOUS_WASTE,
    ),
    ServiceOffering(
        value=ServiceType.FIXED_MONTHLY,
        label="Fixed Monthly Rate",
        icon="📅",
        available=True,
        template_type=TemplateType.FIXED_MONTHLY,
    ),
    ServiceOffering(
        value=ServiceType.CLEARING,
        label="Clearing Project",
        icon="🏗️",
        template_type=TemplateType.CLEARING_PROJECT,
    ),
    ServiceOffering(
        value=ServiceType.ONE_TIME,
        label="One Time Hauling",
        icon="🚚",
        template_type=TemplateType.ONE_TIME_HAULING,
    ),
    ServiceOffering(
        value=ServiceType.LONG_TERM,
        label="Long Term Garbage (Per-kg)",
        icon="⚖️",
        template_type=TemplateType.LONG_TERM,
    ),
    ServiceOffering(
        value=ServiceType.RECYCLABLES,
        label="Purchase of Recyclables",
        icon="♻️",
        template_type=TemplateType.RECYCLABLES_PURCHASE,
    ),
]

_CATALOG_INDEX: Dict[ServiceType, ServiceOffering] = {
    offering.value: offering for offering in SERVICE_CATALOG
}


def get_offering(service_type: Optional[ServiceType]) -> Optional[ServiceOffering]:
    """Look up a catalog entry, None for unset values."""
    if service_type is None:
        return None
    return _CATALOG_INDEX.get(ServiceType(service_type))


def is_available(service_type: Optional[ServiceType]) -> bool:
    """True when the service type is in the catalog and has a template."""
    offering = get_offering(service_type)
    return bool(offering and offering.available)


def template_type_for(service_type: ServiceType) -> TemplateType:
    """Template family used to render proposals for a service type."""
    return _CATALOG_INDEX[ServiceType(service_type)].template_type
