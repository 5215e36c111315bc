from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Numeric, String, Time
from sqlalchemy.orm import relationship

from hrms.db.session import Base
from hrms.models.enums import Profile, Role


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    username = Column(String(200), nullable=False)
    emp_no = Column(String(50), nullable=True)

    role = Column(String(20), nullable=False, default=Role.BASIC.value)  # BASIC|ADMIN|STOREMANAGER|SERVICE
    profile = Column(String(50), nullable=True)  # see Profile; NULL for plain employees

    store_id = Column(Integer, ForeignKey("stores.id"), nullable=True, index=True)
    reporting_manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True)

    expected_in_time = Column(Time, nullable=True)
    expected_out_time = Column(Time, nullable=True)

    leave_days = Column(Float, nullable=False, default=0)
    comp_off = Column(Float, nullable=False, default=0)
    basic_salary = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    store = relationship("Store", back_populates="employees", foreign_keys=[store_id])
    reporting_manager = relationship("Employee", remote_side=[id])

    @property
    def profile_enum(self) -> Profile | None:
        return Profile(self.profile) if self.profile else None

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    @property
    def store_name(self) -> str | None:
        return self.store.name if self.store else None
