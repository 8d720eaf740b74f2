"""
User model with secure password storage.
Users sign in with their matriculation number.
"""

from sqlalchemy import Column, Integer, String, Boolean

from seamless_ride.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    matric_number = Column(String(64), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, matric_number={self.matric_number})>"
