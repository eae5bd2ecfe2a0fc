"""API routers, mounted under /api."""

from proposal_desk.api.contracts import router as contracts_router
from proposal_desk.api.proposals import router as proposals_router
from proposal_desk.api.templates import router as templates_router
from proposal_desk.api.users import router as users_router

__all__ = [
    "contracts_router",
    "proposals_router",
    "templates_router",
    "users_router",
]
