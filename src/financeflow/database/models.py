"""SQLAlchemy models for the local financeflow database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    is_expense = Column(Boolean, nullable=False, default=True)
    date = Column(Date, nullable=False, index=True)
    category = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="unpaid")
    paid_amount = Column(Numeric(12, 2), nullable=True)
    is_carried_forward = Column(Boolean, nullable=False, default=False)
    carried_from_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
