from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from hrms.db.session import Base


class Salary(Base):
    __tablename__ = "salaries"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_salary_employee_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    # inputs
    basic_salary = Column(Numeric(12, 2), nullable=False)
    per_hour_salary = Column(Numeric(12, 2), nullable=False)
    overtime_rate = Column(Numeric(12, 2), nullable=False, default=0)
    bonus = Column(Numeric(12, 2), nullable=False, default=0)
    deduction_of_hours = Column(Float, nullable=False, default=0)
    deduction_of_days = Column(Float, nullable=False, default=0)
    overtime_hours_override = Column(Float, nullable=False, default=0)  # 0 = use approved requests

    # derived, rewritten on every recompute
    per_day_salary = Column(Numeric(12, 2), nullable=False, default=0)
    absent_days = Column(Float, nullable=False, default=0)
    absent_hours = Column(Float, nullable=False, default=0)
    total_deductions = Column(Numeric(12, 2), nullable=False, default=0)
    overtime_hours = Column(Float, nullable=False, default=0)
    overtime_payable = Column(Numeric(12, 2), nullable=False, default=0)
    expenses = Column(Numeric(12, 2), nullable=False, default=0)
    salary_gt = Column(Numeric(12, 2), nullable=False, default=0)
    net_salary = Column(Numeric(12, 2), nullable=False, default=0)

    publish = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("Employee")
