from sqlalchemy import Column, String, Text, Boolean, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
import enum
from .base import UUIDBaseModel, TimestampedModel, enum_values


class AppRole(str, enum.Enum):
    SUPERADMIN = "superadmin"
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    CLIENT = "client"


# Roles allowed to create/edit/delete clients, projects, tasks and attachments
RECORD_MANAGER_ROLES = (AppRole.OWNER, AppRole.ADMIN, AppRole.MEMBER)
# Roles allowed to manage invoices and organization membership
ORG_ADMIN_ROLES = (AppRole.OWNER, AppRole.ADMIN)


class User(TimestampedModel):
    """Authentication identity"""
    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    profile = relationship("Profile", back_populates="user", uselist=False, passive_deletes=True)
    roles = relationship("UserRole", back_populates="user", passive_deletes=True)
    memberships = relationship("OrganizationMember", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User(email='{self.email}')>"


class Profile(TimestampedModel):
    """Public profile, 1:1 with users (shares the user's id)"""
    __tablename__ = "profiles"

    id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    first_name = Column(Text)
    last_name = Column(Text)
    avatar_url = Column(Text)
    biography = Column(Text)

    user = relationship("User", back_populates="profile")

    @property
    def full_name(self):
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or None


class UserRole(UUIDBaseModel):
    """Platform-wide role grants (superadmin)"""
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(AppRole, name="app_role", values_callable=enum_values), nullable=False)

    user = relationship("User", back_populates="roles")


class OrganizationMember(UUIDBaseModel):
    """Membership of a user in an organization"""
    __tablename__ = "organization_members"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_organization_members_org_user"),
    )

    organization_id = Column(String, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(AppRole, name="app_role", values_callable=enum_values), nullable=False, default=AppRole.MEMBER)

    organization = relationship("Organization", back_populates="members")
    user = relationship("User", back_populates="memberships")

    def __repr__(self):
        return f"<OrganizationMember(organization_id='{self.organization_id}', user_id='{self.user_id}', role='{self.role}')>"
