from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship
from .base import TimestampedModel


class Organization(TimestampedModel):
    """Organization/Tenant model for multi-tenancy"""
    __tablename__ = "organizations"

    name = Column(Text, nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    logo_url = Column(Text)
    plan = Column(String(50), default="free")

    # Company details (shown on invoices)
    legal_name = Column(Text)
    tax_id = Column(String(100))
    website = Column(Text)
    industry = Column(Text)

    members = relationship("OrganizationMember", back_populates="organization", passive_deletes=True)

    def __repr__(self):
        return f"<Organization(name='{self.name}', slug='{self.slug}')>"
