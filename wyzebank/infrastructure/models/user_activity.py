"""SQLAlchemy model for the append-only user activity log."""

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String, func

from wyzebank.infrastructure.database import Base


class UserActivityModel(Base):
    """Database representation of one user action."""

    __tablename__ = "user_activity_log"
    __table_args__ = (
        Index("ix_user_activity_log_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    type = Column(String(50), nullable=False)
    status = Column(String(30), nullable=False)
    description = Column(String(255), nullable=True)
    amount_cents = Column(BigInteger, nullable=True)
    currency = Column(String(10), nullable=True)
    source = Column(String(50), nullable=True)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime(), nullable=False, server_default=func.now())


__all__ = ["UserActivityModel"]
