"""Tests for domain models, the service catalog and formatting helpers."""

import json
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from proposal_desk.core.config import format_currency, format_date, map_inquiry_to_client_info
from proposal_desk.models import (
    ClientInfo,
    InquiryRecord,
    Pricing,
    ProposalData,
    ProposalRecord,
    ProposalStatus,
    ProposalTemplate,
    ServiceDetails,
    ServiceLine,
    ServiceType,
    TemplateType,
    WizardState,
)
from proposal_desk.models.catalog import SERVICE_CATALOG, get_offering, is_available, template_type_for


class TestCatalog:
    """Service offerings."""

    def test_catalog_covers_every_service_type(self):
        assert {offering.value for offering in SERVICE_CATALOG} == set(ServiceType)

    def test_only_fixed_monthly_is_available(self):
        available = [offering.value for offering in SERVICE_CATALOG if offering.available]
        assert available == [ServiceType.FIXED_MONTHLY]

    def test_lookup_accepts_raw_values(self):
        assert get_offering("fixed_monthly").label == "Fixed Monthly Rate"
        assert get_offering(None) is None
        assert is_available(None) is False

    def test_template_type_mapping(self):
        assert template_type_for(ServiceType.FIXED_MONTHLY) == TemplateType.FIXED_MONTHLY
        assert template_type_for(ServiceType.WASTE_COLLECTION) == TemplateType.COMPACTOR_HAULING

    def test_unknown_service_type_is_rejected(self):
        with pytest.raises(ValueError):
            ServiceType("garden_care")

    def test_wizard_state_for_step(self):
        assert WizardState.for_step(3) == WizardState.STEP_3


class TestPricing:
    """Totals calculation."""

    def test_placeholder_line_when_nothing_named(self):
        summary = Pricing(services=[ServiceLine(name="  ", unit_price=900)]).calculate()

        assert summary.subtotal == 5000
        assert summary.tax == 600
        assert summary.total == 5600
        assert summary.tax_rate == 12

    def test_named_lines_with_discount(self):
        pricing = Pricing(
            services=[
                ServiceLine(name="Monthly Collection", quantity=2, unit_price=4000),
                ServiceLine(name="Bins", quantity=4, unit_price=250),
            ],
            discount=1000,
            tax_rate=10,
        )
        summary = pricing.calculate()

        assert summary.subtotal == 9000
        assert summary.discount == 1000
        assert summary.tax == 800
        assert summary.total == 8800

    def test_placeholder_is_not_shared(self):
        first = Pricing().effective_services()[0]
        first.unit_price = 1

        assert Pricing().effective_services()[0].unit_price == 5000

    def test_negative_amounts_rejected(self):
        with pytest.raises(PydanticValidationError):
            ServiceLine(name="Bins", unit_price=-5)
        with pytest.raises(PydanticValidationError):
            Pricing(tax_rate=150)


class TestServiceDetails:
    """Template-driven service fields."""

    def test_only_enabled_fields_are_initialized(self):
        details = ServiceDetails.from_template_config({
            "has_contract_duration": True,
            "has_monthly_rate": True,
            "has_pickup_schedule": False,
        })

        assert details.enabled_fields() == {"contract_duration": 12, "monthly_rate": 0}

    def test_collection_defaults(self):
        details = ServiceDetails.from_template_config({"has_equipment": True, "has_labor_crew": True})

        assert details.equipment == []
        assert details.labor_crew.number_of_workers == 0

    def test_empty_config(self):
        assert ServiceDetails.from_template_config(None).enabled_fields() == {}


class TestRecords:
    """Database row models."""

    def test_template_config_parsed_from_json_text(self, sample_template_row):
        template = ProposalTemplate(**sample_template_row)

        assert template.template_config == {"has_contract_duration": True, "has_monthly_rate": True}
        assert template.template_type == TemplateType.FIXED_MONTHLY

    def test_blank_template_config(self, sample_template_row):
        template = ProposalTemplate(**{**sample_template_row, "template_config": ""})
        assert template.template_config == {}

    def test_proposal_data_json_text(self, sample_proposal_row):
        record = ProposalRecord(**{
            **sample_proposal_row,
            "proposal_data": json.dumps(sample_proposal_row["proposal_data"]),
        })

        assert record.status == ProposalStatus.REJECTED
        assert record.proposal_data["terms"]["payment_terms"] == "Net 15"

    def test_proposal_data_requires_content(self, sample_proposal_row):
        data = dict(sample_proposal_row["proposal_data"], edited_html_content="")
        with pytest.raises(PydanticValidationError):
            ProposalData(**data)

    def test_revision_detection(self, sample_inquiry, rejected_inquiry):
        assert sample_inquiry.is_revision is False
        assert rejected_inquiry.is_revision is True

        approved = InquiryRecord(**{**rejected_inquiry.model_dump(), "proposal_status": "approved"})
        assert approved.is_revision is False

    def test_client_info_defaults(self):
        info = ClientInfo(proposal_date=date(2026, 1, 31))

        assert info.validity_days == 30
        assert info.validity_date == date(2026, 3, 2)
        with pytest.raises(PydanticValidationError):
            ClientInfo(validity_days=0)


class TestFormatting:
    """Currency, dates and inquiry mapping."""

    @pytest.mark.parametrize("value,expected", [
        (5600, "₱5,600.00"),
        ("1234.5", "₱1,234.50"),
        (None, "₱0.00"),
        ("abc", "₱0.00"),
    ])
    def test_format_currency(self, value, expected):
        assert format_currency(value) == expected

    @pytest.mark.parametrize("value,expected", [
        ("2026-01-31", "January 31, 2026"),
        (date(2026, 2, 5), "February 5, 2026"),
        ("2026-02-01T09:00:00Z", "February 1, 2026"),
        (None, "N/A"),
        ("soon", "soon"),
    ])
    def test_format_date(self, value, expected):
        assert format_date(value) == expected

    def test_map_inquiry_to_client_info(self):
        result = map_inquiry_to_client_info({
            "name": "  Maria Santos ",
            "company": "GreenBuild Corp",
            "position": None,
            "email": "maria@greenbuild.ph",
        })

        assert result == {
            "client_name": "Maria Santos",
            "client_position": "",
            "client_company": "GreenBuild Corp",
            "client_address": "",
        }
