"""Models package - exports all SQLAlchemy models."""
# Identity
from proposal_manager.models.app_user import AppUser
from proposal_manager.models.user_role import UserRole, AppRole

# Catalog
from proposal_manager.models.service import Service
from proposal_manager.models.service_plan import ServicePlan

# Proposals
from proposal_manager.models.client import Client
from proposal_manager.models.proposal import Proposal, ProposalStatus
from proposal_manager.models.proposal_item import ProposalItem

__all__ = [
    'AppUser', 'UserRole', 'AppRole',
    'Service', 'ServicePlan',
    'Client', 'Proposal', 'ProposalStatus', 'ProposalItem',
]
