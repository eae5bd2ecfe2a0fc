"""Supabase database and storage service for Proposal Desk."""

import logging
from typing import Optional, Dict, Any, List
from datetime import date, datetime
from supabase import create_client, Client
from supabase.lib.client_options import ClientOptions

from proposal_desk.core.config import get_settings

logger = logging.getLogger(__name__)


class DatabaseService:
    """
    Service for Supabase database operations.

    Covers inquiries, proposal templates, proposals, contracts, clients,
    users and the daily counters, plus Storage for signed contract PDFs.
    Uses the sync Supabase client behind an async interface for consistency
    with the rest of the application.

    Reads return None (or an empty list) when nothing matches or the call
    fails; failures are logged here and turned into HTTP errors by the
    services.
    """

    INQUIRIES = "inquiries"
    TEMPLATES = "proposal_templates"
    PROPOSALS = "proposals"
    CONTRACTS = "contracts"
    CLIENTS = "clients"
    USERS = "users"

    def __init__(self):
        """Initialize Supabase client."""
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        """Lazy initialization of Supabase client."""
        if self._client is None:
            settings = get_settings()
            if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
                raise ValueError("Supabase credentials not configured")

            self._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_KEY,
                options=ClientOptions(
                    postgrest_client_timeout=30,
                    storage_client_timeout=30
                )
            )
            logger.info("Supabase client initialized")
        return self._client

    def _first(self, table: str, column: str, value: Any) -> Optional[Dict[str, Any]]:
        response = (
            self.client.table(table)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        if response.data:
            return response.data[0]
        return None

    # ===========================================
    # Inquiries
    # ===========================================

    async def get_inquiry(self, inquiry_id: str) -> Optional["InquiryRecord"]:
        """Fetch inquiry by ID."""
        try:
            from proposal_desk.models import InquiryRecord

            row = self._first(self.INQUIRIES, "id", inquiry_id)
            if row:
                return InquiryRecord(**row)

            logger.warning(f"Inquiry not found: {inquiry_id}")
            return None

        except Exception as e:
            logger.error(f"Failed to get inquiry {inquiry_id}: {e}")
            return None

    async def update_inquiry(
        self,
        inquiry_id: str,
        updates: Dict[str, Any]
    ) -> bool:
        """Update inquiry with partial data."""
        try:
            updates["updated_at"] = datetime.utcnow().isoformat()

            response = (
                self.client.table(self.INQUIRIES)
                .update(updates)
                .eq("id", inquiry_id)
                .execute()
            )

            if response.data:
                logger.info(f"Updated inquiry {inquiry_id}: {list(updates.keys())}")
                return True

            logger.warning(f"Update returned no data for {inquiry_id}")
            return False

        except Exception as e:
            logger.error(f"Failed to update inquiry {inquiry_id}: {e}")
            return False

    # ===========================================
    # Users
    # ===========================================

    async def list_assignable_users(self) -> List["User"]:
        """Active users an inquiry can be assigned to."""
        try:
            from proposal_desk.models import User

            response = (
                self.client.table(self.USERS)
                .select("id, email, name, role, is_active")
                .eq("is_active", True)
                .order("name")
                .execute()
            )
            return [User(**row) for row in response.data or []]

        except Exception as e:
            logger.error(f"Failed to list assignable users: {e}")
            return []

    # ===========================================
    # Proposal Templates
    # ===========================================

    async def get_templates(self, active_only: bool = True) -> List["ProposalTemplate"]:
        try:
            from proposal_desk.models import ProposalTemplate

            query = self.client.table(self.TEMPLATES).select("*")
            if active_only:
                query = query.eq("is_active", True)
            response = query.order("name").execute()
            return [ProposalTemplate(**row) for row in response.data or []]

        except Exception as e:
            logger.error(f"Failed to list proposal templates: {e}")
            return []

    async def get_template(self, template_id: str) -> Optional["ProposalTemplate"]:
        try:
            from proposal_desk.models import ProposalTemplate

            row = self._first(self.TEMPLATES, "id", template_id)
            return ProposalTemplate(**row) if row else None

        except Exception as e:
            logger.error(f"Failed to get template {template_id}: {e}")
            return None

    async def get_template_by_type(self, template_type: str) -> Optional["ProposalTemplate"]:
        """Active template of a type, preferring the one flagged default."""
        try:
            from proposal_desk.models import ProposalTemplate

            response = (
                self.client.table(self.TEMPLATES)
                .select("*")
                .eq("template_type", template_type)
                .eq("is_active", True)
                .order("is_default", desc=True)
                .limit(1)
                .execute()
            )
            if response.data:
                return ProposalTemplate(**response.data[0])
            return None

        except Exception as e:
            logger.error(f"Failed to get template of type {template_type}: {e}")
            return None

    async def get_default_template(self) -> Optional["ProposalTemplate"]:
        try:
            from proposal_desk.models import ProposalTemplate

            response = (
                self.client.table(self.TEMPLATES)
                .select("*")
                .eq("is_default", True)
                .eq("is_active", True)
                .limit(1)
                .execute()
            )
            if response.data:
                return ProposalTemplate(**response.data[0])
            return None

        except Exception as e:
            logger.error(f"Failed to get default template: {e}")
            return None

    # ===========================================
    # Counters
    # ===========================================

    async def next_number(self, entity_type: str, prefix: str) -> Optional[str]:
        """
        Next sequential number for the day, e.g. PROP-20260131-0052.

        The increment runs in the ``increment_counter`` database function so
        concurrent requests never receive the same value.
        """
        try:
            today = date.today()
            response = self.client.rpc(
                "increment_counter",
                {"p_entity_type": entity_type, "p_date": today.isoformat()}
            ).execute()

            value = response.data
            if isinstance(value, list):
                value = value[0] if value else None
            if isinstance(value, dict):
                value = value.get("current_value")
            if value is None:
                logger.error(f"Counter returned no value for {entity_type}")
                return None

            return f"{prefix}-{today:%Y%m%d}-{int(value):04d}"

        except Exception as e:
            logger.error(f"Failed to generate {entity_type} number: {e}")
            return None

    # ===========================================
    # Proposals
    # ===========================================

    async def create_proposal(self, data: Dict[str, Any]) -> Optional["ProposalRecord"]:
        try:
            from proposal_desk.models import ProposalRecord

            data["created_at"] = datetime.utcnow().isoformat()
            response = self.client.table(self.PROPOSALS).insert(data).execute()

            if response.data:
                record = ProposalRecord(**response.data[0])
                logger.info(f"Created proposal: {record.id} ({record.proposal_number})")
                return record

            logger.error("Proposal insert returned no data")
            return None

        except Exception as e:
            logger.error(f"Failed to create proposal: {e}")
            return None

    async def get_proposal(self, proposal_id: str) -> Optional["ProposalRecord"]:
        try:
            from proposal_desk.models import ProposalRecord

            row = self._first(self.PROPOSALS, "id", proposal_id)
            return ProposalRecord(**row) if row else None

        except Exception as e:
            logger.error(f"Failed to get proposal {proposal_id}: {e}")
            return None

    async def update_proposal(
        self,
        proposal_id: str,
        updates: Dict[str, Any]
    ) -> Optional["ProposalRecord"]:
        try:
            from proposal_desk.models import ProposalRecord

            updates["updated_at"] = datetime.utcnow().isoformat()
            response = (
                self.client.table(self.PROPOSALS)
                .update(updates)
                .eq("id", proposal_id)
                .execute()
            )

            if response.data:
                logger.info(f"Updated proposal {proposal_id}: {list(updates.keys())}")
                return ProposalRecord(**response.data[0])

            logger.warning(f"Update returned no data for proposal {proposal_id}")
            return None

        except Exception as e:
            logger.error(f"Failed to update proposal {proposal_id}: {e}")
            return None

    # ===========================================
    # Contracts & Clients
    # ===========================================

    async def get_contract(self, contract_id: str) -> Optional["ContractRecord"]:
        try:
            from proposal_desk.models import ContractRecord

            row = self._first(self.CONTRACTS, "id", contract_id)
            return ContractRecord(**row) if row else None

        except Exception as e:
            logger.error(f"Failed to get contract {contract_id}: {e}")
            return None

    async def update_contract(
        self,
        contract_id: str,
        updates: Dict[str, Any]
    ) -> Optional["ContractRecord"]:
        try:
            from proposal_desk.models import ContractRecord

            updates["updated_at"] = datetime.utcnow().isoformat()
            response = (
                self.client.table(self.CONTRACTS)
                .update(updates)
                .eq("id", contract_id)
                .execute()
            )

            if response.data:
                logger.info(f"Updated contract {contract_id}: {list(updates.keys())}")
                return ContractRecord(**response.data[0])

            logger.warning(f"Update returned no data for contract {contract_id}")
            return None

        except Exception as e:
            logger.error(f"Failed to update contract {contract_id}: {e}")
            return None

    async def find_client_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            return self._first(self.CLIENTS, "email", email.lower().strip())
        except Exception as e:
            logger.error(f"Failed to look up client {email}: {e}")
            return None

    async def create_client(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            data["created_at"] = datetime.utcnow().isoformat()
            response = self.client.table(self.CLIENTS).insert(data).execute()

            if response.data:
                client = response.data[0]
                logger.info(f"Created client: {client.get('id')} ({client.get('email')})")
                return client

            logger.error("Client insert returned no data")
            return None

        except Exception as e:
            logger.error(f"Failed to create client: {e}")
            return None

    # ===========================================
    # Storage
    # ===========================================

    async def upload_file(
        self,
        key: str,
        content: bytes,
        content_type: str = "application/pdf"
    ) -> Optional[str]:
        """Upload bytes to the contracts bucket. Returns the storage key."""
        try:
            bucket = get_settings().SUPABASE_STORAGE_BUCKET
            self.client.storage.from_(bucket).upload(
                path=key,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
            logger.info(f"Uploaded {len(content)} bytes to {bucket}/{key}")
            return key

        except Exception as e:
            logger.error(f"Failed to upload {key}: {e}")
            return None

    # ===========================================
    # Health
    # ===========================================

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            self.client.table(self.TEMPLATES).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


# Forward references for type hints
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from proposal_desk.models import (
        ContractRecord,
        InquiryRecord,
        ProposalRecord,
        ProposalTemplate,
        User,
    )

# Singleton instance
db_service = DatabaseService()
