import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, String

from retail_ledger.core.database import Base


class UserRole(str, enum.Enum):
    admin = "admin"
    manager = "manager"
    staff = "staff"
    customer = "customer"


class User(Base):
    """Staff member; only read here to turn performed_by ids into display names."""
    __tablename__ = "users"

    id = Column(String(30), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    display_name = Column(String(255), nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.staff)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"
