from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from hrms.db.session import Base
from hrms.models.enums import ApprovalStage, LeaveStatus


class Leave(Base):
    __tablename__ = "leaves"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    is_half_day_start = Column(Boolean, nullable=False, default=False)
    is_half_day_end = Column(Boolean, nullable=False, default=False)
    start_half_period = Column(String(20), nullable=True)  # first_half|second_half
    end_half_period = Column(String(20), nullable=True)
    reason = Column(Text, nullable=False)

    status = Column(String(20), nullable=False, default=LeaveStatus.PENDING.value)
    approval_stage = Column(String(20), nullable=False, default=ApprovalStage.COORDINATOR.value)
    effective_days = Column(Float, nullable=False, default=0)

    # reporting manager at submission time
    manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True)

    approved_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    manager_approval_status = Column(String(20), nullable=True)
    manager_approved_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    manager_approved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("Employee", foreign_keys=[employee_id])
    history = relationship(
        "LeaveHistory",
        back_populates="leave",
        cascade="all, delete-orphan",
        order_by="LeaveHistory.id",
    )


class LeaveHistory(Base):
    __tablename__ = "leave_history"

    id = Column(Integer, primary_key=True, index=True)
    leave_id = Column(Integer, ForeignKey("leaves.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    status = Column(String(20), nullable=False)
    remark = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    leave = relationship("Leave", back_populates="history")
