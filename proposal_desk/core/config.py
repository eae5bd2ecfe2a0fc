"""Configuration management for Proposal Desk."""

from datetime import date, datetime
from functools import lru_cache
from typing import Dict, Any, List, Optional, Union
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # Supabase Configuration
    # ===========================================
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase service key")
    SUPABASE_STORAGE_BUCKET: str = Field(
        default="contracts",
        description="Storage bucket for signed contract PDFs"
    )

    # ===========================================
    # REST Client Configuration (wizard / portal side)
    # ===========================================
    API_BASE_URL: str = Field(
        default="http://localhost:8000/api",
        description="Base URL the wizard and contract portal call"
    )
    API_TIMEOUT_SECONDS: float = Field(default=30.0, description="HTTP timeout for API calls")

    # ===========================================
    # Server Configuration
    # ===========================================
    DEBUG: bool = Field(default=True, description="Debug mode")
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173"],
        description="Origins allowed to call the API"
    )

    # ===========================================
    # Proposal Defaults
    # ===========================================
    DEFAULT_VALIDITY_DAYS: int = Field(default=30, ge=1, description="Default proposal validity")
    DEFAULT_TAX_RATE: float = Field(default=12.0, ge=0, le=100, description="VAT rate in percent")
    DEFAULT_PAYMENT_TERMS: str = Field(default="Net 30", description="Default payment terms")

    # ===========================================
    # Editor / Contract Portal
    # ===========================================
    EDITOR_SCOPE_CLASS: str = Field(
        default=".proposal-editor-scope",
        description="Class every template style rule is scoped under"
    )
    MAX_SIGNED_CONTRACT_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Upper bound for uploaded signed contracts"
    )
    CONTACT_EMAIL: str = Field(default="sales@example.com", description="Shown on dead-end screens")
    CONTACT_PHONE: str = Field(default="", description="Shown on dead-end screens")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# ===========================================
# Inquiry → Client Info Mapping
# ===========================================
# Maps inquiry record columns to the wizard's client info fields

INQUIRY_FIELD_MAPPING: Dict[str, str] = {
    "name": "client_name",
    "position": "client_position",
    "company": "client_company",
    "address": "client_address",
}


def map_inquiry_to_client_info(inquiry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map an inquiry record onto client info fields.

    Args:
        inquiry: Inquiry row (or model dump) from the database

    Returns:
        Dictionary with client info field names, missing values as ""
    """
    result = {}

    for inquiry_key, client_key in INQUIRY_FIELD_MAPPING.items():
        value = inquiry.get(inquiry_key)
        result[client_key] = str(value).strip() if value else ""

    return result


def format_currency(value: Any) -> str:
    """Format an amount in pesos with two decimals, e.g. ₱5,600.00."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        amount = 0.0
    return f"₱{amount:,.2f}"


def format_date(value: Optional[Union[str, date, datetime]]) -> str:
    """Format a date as 'January 31, 2026'. Returns 'N/A' when empty."""
    if not value:
        return "N/A"

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value

    return f"{value:%B} {value.day}, {value.year}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
