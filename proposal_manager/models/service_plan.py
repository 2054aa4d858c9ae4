"""ServicePlan model - the priced unit a proposal is assembled from."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from proposal_manager.database import Base, IdType


class ServicePlan(Base):
    """
    Service Plan (plano de serviço).

    Belongs to exactly one Service. Fees are non-negative; a plan may be
    purely recurring (setup_fee = 0), one-time (monthly_fee = 0) or both.
    """

    __tablename__ = 'service_plans'
    __table_args__ = (
        CheckConstraint('monthly_fee >= 0', name='ck_service_plan_monthly_fee'),
        CheckConstraint('setup_fee >= 0', name='ck_service_plan_setup_fee'),
        CheckConstraint('delivery_time_days >= 0', name='ck_service_plan_delivery_time'),
    )

    id = Column(IdType, primary_key=True, autoincrement=True)
    service_id = Column(BigInteger, ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True)
    plan_name = Column(String(200), nullable=False)
    monthly_fee = Column(Numeric(12, 2), nullable=False, default=0)
    setup_fee = Column(Numeric(12, 2), nullable=False, default=0)
    deliverables = Column(Text, nullable=True)
    delivery_time_days = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    service = relationship('Service', back_populates='plans')

    def to_dict(self):
        return {
            'id': self.id,
            'service_id': self.service_id,
            'plan_name': self.plan_name,
            'monthly_fee': self.monthly_fee,
            'setup_fee': self.setup_fee,
            'deliverables': self.deliverables,
            'delivery_time_days': self.delivery_time_days,
        }

    def __repr__(self):
        return f"<ServicePlan(id={self.id}, plan='{self.plan_name}', monthly={self.monthly_fee}, setup={self.setup_fee})>"
