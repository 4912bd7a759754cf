from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
    text,
)
from sqlalchemy.orm import relationship

from lending.db.base import Base


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("week_number >= 1", name="ck_payments_week_number_positive"),
        CheckConstraint("amount_due >= 0", name="ck_payments_amount_due_nonneg"),
        CheckConstraint("amount_paid >= 0", name="ck_payments_amount_paid_nonneg"),
        CheckConstraint("remaining_balance >= 0", name="ck_payments_remaining_nonneg"),
        CheckConstraint(
            "status IN ('Pending', 'Partial', 'Paid', 'Overdue')",
            name="ck_payments_status",
        ),
        Index("ix_payments_loan_week", "loan_id", "week_number"),
        # one full (non-partial) payment per loan week among live rows
        Index(
            "uq_payments_full_week",
            "loan_id",
            "week_number",
            unique=True,
            postgresql_where=text("is_partial = false AND deleted_at IS NULL"),
            sqlite_where=text("is_partial = 0 AND deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), nullable=False, index=True)
    week_number = Column(Integer, nullable=False)
    payment_date = Column(DateTime(timezone=True), nullable=False)
    amount_due = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    remaining_balance = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    status = Column(String(20), nullable=False, index=True)
    payment_method = Column(String(50), nullable=True)
    is_partial = Column(Boolean, nullable=False, default=False, server_default="false")
    completes_week = Column(Boolean, nullable=False, default=False, server_default="false")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    loan = relationship("Loan", back_populates="payments", lazy="raise")
