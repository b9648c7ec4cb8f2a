from sqlalchemy import Column, String, Text, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
import enum
from .base import TimestampedModel, enum_values


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"


class Client(TimestampedModel):
    """Client (customer) of an organization"""
    __tablename__ = "clients"
    __table_args__ = (Index("idx_clients_org_id_id", "organization_id", "id"),)

    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    vat_number = Column(Text)
    address = Column(Text)
    notes = Column(Text)
    status = Column(
        Enum(ClientStatus, name="client_status", values_callable=enum_values),
        nullable=False,
        default=ClientStatus.ACTIVE,
    )

    organization = relationship("Organization")

    def __repr__(self):
        return f"<Client(name='{self.name}', status='{self.status}')>"
