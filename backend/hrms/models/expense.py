from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from hrms.db.session import Base


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (UniqueConstraint("employee_id", "date", name="uq_expense_employee_date"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    initial_reading = Column(Numeric(12, 2), nullable=False)
    final_reading = Column(Numeric(12, 2), nullable=False)
    total_distance = Column(Numeric(12, 2), nullable=False)
    rate = Column(Numeric(12, 2), nullable=False)
    fuel_total = Column(Numeric(12, 2), nullable=False)
    miscellaneous_expense = Column(Numeric(12, 2), nullable=False, default=0)
    amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    employee = relationship("Employee")
