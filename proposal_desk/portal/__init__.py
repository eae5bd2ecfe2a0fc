"""Client-facing contract portal."""

from proposal_desk.portal.contract_flow import (
    ContractResponseFlow,
    validate_signed_contract_file,
)

__all__ = [
    "ContractResponseFlow",
    "validate_signed_contract_file",
]
