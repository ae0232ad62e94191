"""User model — authentication, profile, and platform role."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from venuebook.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

ROLE_CUSTOMER = "customer"
ROLE_STAFF = "staff"
ROLE_HALL_OWNER = "hall_owner"
ROLE_SUPER_ADMIN = "super_admin"

ELEVATED_ROLES = frozenset({ROLE_STAFF, ROLE_HALL_OWNER, ROLE_SUPER_ADMIN})


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Platform account: customers, hall staff, hall owners and admins."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    role: Mapped[str] = mapped_column(String(50), default=ROLE_CUSTOMER, nullable=False, index=True)

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"
