"""Service model (catalog entry grouping plans)."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from proposal_manager.database import Base, IdType


class Service(Base):
    """Service (serviço). Reference data; plans hang from it."""

    __tablename__ = 'services'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    plans = relationship(
        'ServicePlan',
        back_populates='service',
        cascade='all, delete-orphan',
        order_by='ServicePlan.id'
    )

    def to_dict(self, with_plans=False):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
        }
        if with_plans:
            data['plans'] = [plan.to_dict() for plan in self.plans]
        return data

    def __repr__(self):
        return f"<Service(id={self.id}, name='{self.name}')>"
