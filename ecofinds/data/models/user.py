from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from ecofinds.data.database import Base


# accounts live in the auth service, this is the local mirror used for ownership checks
class UserModel(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
