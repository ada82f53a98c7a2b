import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, Text, JSON, ForeignKey

from .base import Base


class Dorm(Base):
    __tablename__ = "dorms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, default="")
    dorm_name = Column(String(255))
    area = Column(String(255))
    address = Column(Text)
    university = Column(String(255))
    monthly_price = Column(Float)
    gender_preference = Column(String(16))
    amenities = Column(JSON, default=list)
    room_types = Column(String(255))
    verification_status = Column(String(32), default="Pending")
    available = Column(Boolean, default=True)
    cover_image = Column(String(512))
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    dorm_id = Column(String(36), ForeignKey("dorms.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False, default="")
    type = Column(String(64), nullable=False, default="")
    price = Column(Float, nullable=False, default=0)
    capacity = Column(Integer, default=1)
    capacity_occupied = Column(Integer, default=0)
    available = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=False), default=datetime.utcnow, nullable=False)
