"""Client model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from proposal_manager.database import Base, IdType


class Client(Base):
    """
    Client (cliente).

    Owned independently of proposals: deleting a proposal never touches its
    client, and deleting a client detaches (nulls) its proposals.
    """

    __tablename__ = 'clients'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    company = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    proposals = relationship('Proposal', back_populates='client')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'company': self.company,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}', company='{self.company}')>"
