from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from hrms.db.session import Base


class CompOffHistory(Base):
    """Audit trail only; the balance of record is Employee.comp_off."""

    __tablename__ = "comp_off_history"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    attendance_date = Column(Date, nullable=True)
    action = Column(String(20), nullable=False)
    amount = Column(Float, nullable=False)
    comp_off_days = Column(Float, nullable=False)  # balance after this entry
    created_at = Column(DateTime, default=datetime.utcnow)

    employee = relationship("Employee")
