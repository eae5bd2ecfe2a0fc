"""Pytest fixtures and configuration for Proposal Desk tests."""

import os
import pytest
from datetime import datetime, timezone
from typing import Dict, Any, Generator
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("API_BASE_URL", "http://testserver/api")
os.environ.setdefault("DEBUG", "true")

from proposal_desk.integrations.api_client import ProposalApiClient
from proposal_desk.models import (
    InquiryRecord,
    PreviewResult,
    ProposalTemplate,
    ServiceType,
    TemplateMeta,
    TemplateType,
)
from proposal_desk.wizard.controller import WizardController
from proposal_desk.wizard.notifications import Notifier


PREVIEW_HTML = (
    "<html><head><style>body { color: #111; }</style></head>"
    "<body><h1>Fixed Monthly Rate</h1><p id=\"intro\">Dear Maria Santos,</p></body></html>"
)

# ===========================================
# Sample Data Fixtures
# ===========================================

@pytest.fixture
def sample_inquiry() -> InquiryRecord:
    """Inquiry opened in the wizard."""
    return InquiryRecord(
        id="inq_test_12345",
        name="Maria Santos",
        email="maria@greenbuild.ph",
        company="GreenBuild Corp",
        position="Facilities Manager",
        address="123 Ayala Ave, Makati City",
        service_type=ServiceType.FIXED_MONTHLY,
    )


@pytest.fixture
def rejected_inquiry(sample_inquiry) -> InquiryRecord:
    """Inquiry whose proposal came back rejected."""
    return InquiryRecord(**{
        **sample_inquiry.model_dump(),
        "proposal_id": "prop_test_1",
        "proposal_status": "rejected",
        "proposal_rejection_reason": "Monthly rate too high",
    })


@pytest.fixture
def sample_template_row() -> Dict[str, Any]:
    """Proposal template row as stored in the database."""
    return {
        "id": "tmpl_fixed_monthly",
        "name": "Fixed Monthly Rate",
        "description": "Fixed monthly garbage collection",
        "html_template": (
            "<html><head><style>h1 { color: green; }</style></head>"
            "<body><h1>{{ service_label }}</h1><p>{{ client_name }}</p>"
            "<p>{{ pricing.total | currency }}</p></body></html>"
        ),
        "template_type": "fixed_monthly",
        "category": "recurring",
        "template_config": '{"has_contract_duration": true, "has_monthly_rate": true}',
        "is_active": True,
        "is_default": True,
    }


@pytest.fixture
def sample_template(sample_template_row) -> ProposalTemplate:
    return ProposalTemplate(**sample_template_row)


@pytest.fixture
def sample_proposal_row() -> Dict[str, Any]:
    """Stored proposal row."""
    return {
        "id": "prop_test_1",
        "proposal_number": "PROP-20260131-0001",
        "inquiry_id": "inq_test_12345",
        "template_id": "tmpl_fixed_monthly",
        "requested_by": "user_sales_1",
        "proposal_data": {
            "service_type": "fixed_monthly",
            "client_info": {
                "client_name": "Maria Santos",
                "client_position": "Facilities Manager",
                "client_company": "GreenBuild Corp",
                "client_address": "123 Ayala Ave, Makati City",
                "proposal_date": "2026-01-31",
                "validity_days": 45,
            },
            "services": [
                {"name": "Monthly Collection", "description": "", "quantity": 1, "unit_price": 8000}
            ],
            "pricing": {"subtotal": 8000, "discount": 0, "tax": 960, "total": 8960, "tax_rate": 12},
            "terms": {"payment_terms": "Net 15", "schedule": "Mon/Wed/Fri", "notes": ""},
            "service_details": {"contract_duration": 12, "monthly_rate": 8000},
            "edited_html_content": "<p>Stored proposal</p>",
        },
        "status": "rejected",
        "rejection_reason": "Monthly rate too high",
    }


@pytest.fixture
def sample_contract_row() -> Dict[str, Any]:
    """Contract waiting for the client's signature."""
    return {
        "id": "ctr_test_1",
        "proposal_id": "prop_test_1",
        "inquiry_id": "inq_test_12345",
        "status": "sent_to_client",
        "client_name": "Maria Santos",
        "company_name": "GreenBuild Corp",
        "client_email_contract": "Maria@GreenBuild.ph",
        "client_submission_token": "a1b2c3d4e5f6",
        "requested_by": "user_sales_1",
        "sent_to_client_at": datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc).isoformat(),
        "signed_at": None,
    }


# ===========================================
# Mock Fixtures
# ===========================================

@pytest.fixture
def mock_api(sample_template) -> MagicMock:
    """REST client double; spec= makes its coroutine methods AsyncMocks."""
    api = MagicMock(spec=ProposalApiClient)
    api.get_template_for_service.return_value = sample_template
    api.get_default_template.return_value = sample_template
    api.generate_proposal_preview.return_value = PreviewResult(
        html=PREVIEW_HTML,
        template_meta=TemplateMeta(
            id=sample_template.id,
            name=sample_template.name,
            template_type=TemplateType.FIXED_MONTHLY,
        ),
    )
    return api


@pytest.fixture
def preview_html() -> str:
    """HTML returned by the preview endpoint."""
    return PREVIEW_HTML


@pytest.fixture
def pdf_bytes() -> bytes:
    """Smallest content the server accepts as a PDF."""
    return b"%PDF-1.7\n%test document\n"


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def wizard(mock_api, notifier) -> WizardController:
    return WizardController(mock_api, notifier)


@pytest.fixture
def mock_db():
    """Database singleton double used by the backend services."""
    db = MagicMock()
    for name in (
        "get_inquiry", "update_inquiry", "list_assignable_users",
        "get_templates", "get_template", "get_template_by_type", "get_default_template",
        "next_number", "create_proposal", "get_proposal", "update_proposal",
        "get_contract", "update_contract", "find_client_by_email", "create_client",
        "upload_file", "health_check",
    ):
        setattr(db, name, AsyncMock())

    with patch("proposal_desk.services.proposal_service.db_service", db), \
         patch("proposal_desk.services.contract_service.db_service", db), \
         patch("proposal_desk.api.users.db_service", db):
        yield db


@pytest.fixture
def mock_supabase():
    """Mock Supabase client behind the real DatabaseService."""
    from proposal_desk.core.database import db_service

    client = MagicMock()
    with patch.object(db_service, "_client", client):
        yield client


# ===========================================
# Client Fixtures
# ===========================================

@pytest.fixture
def client(mock_db) -> Generator[TestClient, None, None]:
    """Test client with the database mocked."""
    from proposal_desk.main import app
    with TestClient(app) as test_client:
        yield test_client


# ===========================================
# Pytest Configuration
# ===========================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
