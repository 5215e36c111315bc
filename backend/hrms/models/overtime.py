from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from hrms.db.session import Base
from hrms.models.enums import RequestStatus


class OvertimeRequest(Base):
    __tablename__ = "overtime_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    hours = Column(Float, nullable=False)
    remarks = Column(Text, nullable=False)
    manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)
    approver_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_hours = Column(Float, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("Employee", foreign_keys=[employee_id])
