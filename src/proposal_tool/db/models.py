"""SQLAlchemy ORM models for templates, upgrades, proposals and communities."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .database import Base


def utcnow():
    return datetime.now(timezone.utc)


def Money(**kwargs):
    return Column(Numeric(12, 2, asdecimal=False), **kwargs)


class HomeTemplate(Base):
    __tablename__ = "home_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    base_price = Money(nullable=False)
    base_cost = Money(nullable=False, default=0.0)
    beds = Column(String, default="")
    baths = Column(String, default="")
    garage = Column(String, default="")
    sqft = Column(Integer, default=0)
    image_url = Column(String, default="")


class Upgrade(Base):
    __tablename__ = "upgrades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template = Column(String, index=True, nullable=True)  # template name; NULL = all templates
    category = Column(String, index=True, nullable=False)
    location = Column(String, nullable=True)
    parent_selection = Column(String, nullable=True)
    choice_title = Column(String, nullable=False)
    builder_cost = Money(nullable=False, default=0.0)
    client_price = Money(nullable=False, default=0.0)
    margin = Column(Float, nullable=False, default=0.0)  # percent


class Proposal(Base):
    __tablename__ = "proposals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    todays_date = Column(String, nullable=False)
    buyer_last_name = Column(String, nullable=False)
    community = Column(String, nullable=False)
    lot_number = Column(String, nullable=False)
    lot_address = Column(String, nullable=False)
    house_plan = Column(String, nullable=False)
    base_price = Money(nullable=False)
    lot_premium = Money(nullable=False, default=0.0)
    sales_incentive = Money(nullable=False, default=0.0)
    sales_incentive_enabled = Column(Boolean, nullable=False, default=False)
    design_studio_allowance = Money(nullable=False, default=0.0)
    selected_upgrades = Column(JSON, nullable=False, default=list)
    total_price = Money(nullable=False, default=0.0)
    archived = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    special_requests = relationship(
        "SpecialRequest",
        back_populates="proposal",
        cascade="all, delete-orphan",
        order_by="SpecialRequest.id",
    )


class SpecialRequest(Base):
    __tablename__ = "special_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    proposal_id = Column(Integer, ForeignKey("proposals.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    builder_cost = Money(nullable=False, default=0.0)
    client_price = Money(nullable=False, default=0.0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    proposal = relationship("Proposal", back_populates="special_requests")


class Community(Base):
    __tablename__ = "communities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    location = Column(String, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    lots = relationship("Lot", back_populates="community", cascade="all, delete-orphan")


class Lot(Base):
    __tablename__ = "lots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    community_id = Column(Integer, ForeignKey("communities.id"), nullable=False, index=True)
    lot_number = Column(String, nullable=False)
    address = Column(String, default="")
    premium = Money(nullable=False, default=0.0)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    community = relationship("Community", back_populates="lots")
