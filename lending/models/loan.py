from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import relationship

from lending.db.base import Base


class Loan(Base):
    __tablename__ = "loans"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_loans_total_amount_nonneg"),
        CheckConstraint("amortization >= 0", name="ck_loans_amortization_nonneg"),
        CheckConstraint("outstanding_balance >= 0", name="ck_loans_outstanding_nonneg"),
        CheckConstraint("paid_weeks >= 0", name="ck_loans_paid_weeks_nonneg"),
        CheckConstraint(
            "status IN ('Active', 'Paid', 'Overdue', 'Default')",
            name="ck_loans_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    control_number = Column(String(20), nullable=False, unique=True)
    date_of_release = Column(Date, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    amortization = Column(Numeric(12, 2), nullable=False)
    terms = Column(Integer, nullable=False)
    mode = Column(String(20), nullable=False, default="Weekly", server_default="Weekly")
    outstanding_balance = Column(Numeric(12, 2), nullable=False)
    paid_weeks = Column(Integer, nullable=False, default=0, server_default="0")
    payment_period_weeks = Column(Integer, nullable=False, default=0, server_default="0")
    status = Column(String(20), nullable=False, default="Active", server_default="Active", index=True)
    due_date = Column(String(20), nullable=True)
    deductions = Column(String(100), nullable=True)
    amount_release = Column(Numeric(12, 2), nullable=False, default=0, server_default="0")
    method_of_payment = Column(String(50), nullable=True)
    credit_history = Column(String(50), nullable=True)
    recommended_by = Column(String(100), nullable=True)
    approved_by = Column(String(100), nullable=True)
    checked_by = Column(String(100), nullable=True)
    noted_by = Column(String(100), nullable=True)
    loan_cycle = Column(Integer, nullable=True)
    recommended_loan_amount = Column(Numeric(12, 2), nullable=True)
    approved_loan_amount = Column(Numeric(12, 2), nullable=True)
    application_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    client = relationship("Client", back_populates="loans", lazy="raise")
    payments = relationship("Payment", back_populates="loan", lazy="raise")
