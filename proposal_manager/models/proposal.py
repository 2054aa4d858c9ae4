"""Proposal model - aggregate root of a commercial proposal."""
import enum
from decimal import Decimal
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from proposal_manager.database import Base, IdType


class ProposalStatus(enum.Enum):
    """Proposal status tokens, in lifecycle order."""
    DRAFT = "Rascunho"
    SAVED = "Salva"
    SENT = "Enviada"
    ACCEPTED = "Aceita"
    DECLINED = "Recusada"

    @classmethod
    def values(cls):
        return [status.value for status in cls]


class Proposal(Base):
    """
    Proposal (Proposta Comercial).

    total_monthly / total_setup / discount_value are a snapshot written by the
    builder's finalize step. They are not recomputed when items change later.
    discount_value is always an absolute amount.
    """

    __tablename__ = 'proposals'

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('app_user.id', ondelete='SET NULL'), nullable=True)
    client_id = Column(BigInteger, ForeignKey('clients.id', ondelete='SET NULL'), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=ProposalStatus.DRAFT.value)
    total_monthly = Column(Numeric(12, 2), nullable=False, default=0)
    total_setup = Column(Numeric(12, 2), nullable=False, default=0)
    discount_value = Column(Numeric(12, 2), nullable=False, default=0)
    observations = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Every ORM UPDATE checks and bumps the version (compare-and-swap)
    __mapper_args__ = {'version_id_col': version}

    # Relationships
    user = relationship('AppUser')
    client = relationship('Client', back_populates='proposals')
    items = relationship(
        'ProposalItem',
        back_populates='proposal',
        cascade='all, delete-orphan',
        order_by='ProposalItem.id'
    )

    @property
    def is_draft(self):
        return self.status == ProposalStatus.DRAFT.value

    @property
    def has_client(self):
        return self.client_id is not None

    @property
    def final_total(self):
        """Final value from the stored snapshot (may be stale relative to items)."""
        return (
            Decimal(self.total_monthly or 0)
            + Decimal(self.total_setup or 0)
            - Decimal(self.discount_value or 0)
        )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'client_id': self.client_id,
            'status': self.status,
            'total_monthly': self.total_monthly,
            'total_setup': self.total_setup,
            'discount_value': self.discount_value,
            'final_total': self.final_total,
            'observations': self.observations,
            'version': self.version,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Proposal(id={self.id}, status='{self.status}', client_id={self.client_id})>"
