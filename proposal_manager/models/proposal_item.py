"""ProposalItem model - a plan included in a proposal."""
from sqlalchemy import Column, BigInteger, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from proposal_manager.database import Base, IdType


class ProposalItem(Base):
    """
    Proposal Item (item da proposta).

    Join row between a proposal and a service plan. A plan appears at most
    once per proposal.
    """

    __tablename__ = 'proposal_items'
    __table_args__ = (
        UniqueConstraint('proposal_id', 'service_plan_id', name='uq_proposal_item_plan'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    proposal_id = Column(BigInteger, ForeignKey('proposals.id', ondelete='CASCADE'), nullable=False, index=True)
    service_plan_id = Column(BigInteger, ForeignKey('service_plans.id'), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    proposal = relationship('Proposal', back_populates='items')
    plan = relationship('ServicePlan')

    def __repr__(self):
        return f"<ProposalItem(id={self.id}, proposal_id={self.proposal_id}, plan_id={self.service_plan_id})>"
