"""
SQLAlchemy database models
"""
from sqlalchemy import Column, String, Integer, DateTime, JSON, Text, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from .database import Base
import uuid


def generate_uuid():
    return str(uuid.uuid4())


class Client(Base):
    """Client directory entry"""
    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=generate_uuid)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    date_of_birth = Column(String)
    diagnosis = Column(String)
    guardian_name = Column(String)
    provider = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_clients_last_name", "last_name"),
    )


class Report(Base):
    """Generated session report"""
    __tablename__ = "reports"

    id = Column(String, primary_key=True, default=generate_uuid)
    session_id = Column(String, nullable=False)
    user_id = Column(String, nullable=False)
    client_id = Column(String, nullable=False)

    # Report metadata
    client_name = Column(String, nullable=False)
    session_date = Column(String, nullable=False)
    session_duration = Column(String)
    location = Column(String)
    rbt_name = Column(String)

    # Report content
    full_content = Column(Text, nullable=False)  # Raw generated/edited markdown
    status = Column(String, nullable=False, default="draft")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    sections = relationship(
        "ReportSection",
        back_populates="report",
        order_by="ReportSection.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_reports_user_id", "user_id"),
        Index("ix_reports_client_id", "client_id"),
        Index("ix_reports_session_id", "session_id"),
        Index("ix_reports_created_at", "created_at"),
        Index("ix_reports_status", "status"),
    )


class ReportSection(Base):
    """One named section of a report, kept in report order"""
    __tablename__ = "report_sections"

    id = Column(String, primary_key=True, default=generate_uuid)
    report_id = Column(String, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    position = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)

    report = relationship("Report", back_populates="sections")

    __table_args__ = (
        Index("ix_report_sections_report_id", "report_id"),
    )


class AuditLog(Base):
    """Audit log for compliance and security"""
    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, nullable=False)

    # Action details
    action = Column(String, nullable=False)
    resource = Column(String, nullable=False)
    resource_id = Column(String, nullable=True)

    # Request metadata
    ip_address = Column(String)
    user_agent = Column(String)
    extra_metadata = Column(JSON)  # Additional context

    timestamp = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_audit_logs_user_id", "user_id"),
        Index("ix_audit_logs_action", "action"),
        Index("ix_audit_logs_timestamp", "timestamp"),
        Index("ix_audit_logs_resource", "resource"),
    )
