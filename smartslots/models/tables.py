from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Businesses(Base):
    __tablename__ = 'businesses'

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    slug = Column(Text, unique=True)
    timezone = Column(Text, nullable=False, server_default=text("'UTC'"))
    created_at = Column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))

    policy = relationship('BusinessPolicies', back_populates='business', uselist=False)
    schedules = relationship('BusinessSchedules', back_populates='business')
    time_blocks = relationship('BusinessTimeBlocks', back_populates='business')
    appointments = relationship('Appointments', back_populates='business')


class BusinessPolicies(Base):
    __tablename__ = 'business_policies'

    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), primary_key=True)
    booking_lead_days = Column(Integer, nullable=False, server_default=text('0'))

    business = relationship('Businesses', back_populates='policy')


class BusinessSchedules(Base):
    __tablename__ = 'business_schedules'
    __table_args__ = (
        UniqueConstraint('business_id', 'weekday'),
        CheckConstraint('weekday BETWEEN 0 AND 6'),
    )

    id = Column(Integer, primary_key=True)
    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    weekday = Column(Integer, nullable=False)
    start_time = Column(Text, nullable=False, server_default=text("'09:00:00'"))
    end_time = Column(Text, nullable=False, server_default=text("'18:00:00'"))
    is_closed = Column(Boolean, nullable=False, server_default=text('false'))
    slot_granularity_min = Column(Integer, nullable=False, server_default=text('15'))

    business = relationship('Businesses', back_populates='schedules')


class BusinessTimeBlocks(Base):
    __tablename__ = 'business_time_blocks'

    id = Column(Integer, primary_key=True)
    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    reason = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'))

    business = relationship('Businesses', back_populates='time_blocks')


class Appointments(Base):
    __tablename__ = 'appointments'

    id = Column(Integer, primary_key=True)
    business_id = Column(ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    staff_id = Column(Text)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True))
    status = Column(Text, nullable=False, server_default=text("'pending_confirmation'"))

    business = relationship('Businesses', back_populates='appointments')
