from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Table, Text, Time
from sqlalchemy.orm import relationship

from hrms.db.session import Base

# HR staff assigned to a store without being one of its employees
store_hrs = Table(
    "store_hrs",
    Base.metadata,
    Column("store_id", Integer, ForeignKey("stores.id", ondelete="CASCADE"), primary_key=True),
    Column("employee_id", Integer, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True),
)


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, unique=True)
    late_entry_threshold = Column(Integer, nullable=True)  # minutes
    early_exit_threshold = Column(Integer, nullable=True)  # minutes
    expected_in_time = Column(Time, nullable=True)
    expected_out_time = Column(Time, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    calendar = relationship("Calendar", back_populates="store", uselist=False, cascade="all, delete-orphan")
    employees = relationship("Employee", back_populates="store", foreign_keys="Employee.store_id")
    hrs = relationship("Employee", secondary=store_hrs)


class Calendar(Base):
    __tablename__ = "calendars"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, unique=True)
    weekday_off = Column(String(20), nullable=False, default="Sunday")  # English day name

    store = relationship("Store", back_populates="calendar")
    holidays = relationship("Holiday", back_populates="calendar", cascade="all, delete-orphan")


class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    calendar_id = Column(Integer, ForeignKey("calendars.id"), nullable=False, index=True)
    # not unique per calendar: readers must tolerate duplicates
    date = Column(Date, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    calendar = relationship("Calendar", back_populates="holidays")
