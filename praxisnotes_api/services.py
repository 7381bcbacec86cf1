"""
Service layer for business logic
"""
from typing import List, Optional, Dict, Any
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
import logging

from praxisnotes.config import DEFAULT_CLIENTS
from praxisnotes.models import (
    ClientInfo,
    GeneratedReport,
    ReportMetadata,
    ReportStatus,
)
from praxisnotes.reports import PersistenceError, StoredReport

from .database import session_scope
from .db_models import AuditLog, Client, Report, ReportSection
from .cache import cache_response

logger = logging.getLogger(__name__)


def _client_row_to_dict(row: Client) -> Dict[str, Any]:
    return {
        "id": row.id,
        "first_name": row.first_name,
        "last_name": row.last_name,
        "date_of_birth": row.date_of_birth or "",
        "diagnosis": row.diagnosis or "",
        "guardian_name": row.guardian_name or "",
        "provider": row.provider or "",
    }


class ClientDirectoryService:
    """Read-only client directory"""

    @cache_response(ttl=600, key_prefix="clients")
    async def _fetch_clients(self) -> List[Dict[str, Any]]:
        async with session_scope() as session:
            result = await session.execute(select(Client).order_by(Client.last_name))
            return [_client_row_to_dict(row) for row in result.scalars().all()]

    async def list_clients(self) -> List[ClientInfo]:
        """List clients, falling back to the sample directory when the database is unavailable"""
        try:
            rows = await self._fetch_clients()
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Client directory unavailable, using sample clients: {e}")
            rows = []

        if not rows:
            rows = DEFAULT_CLIENTS
        return [ClientInfo.model_validate(row) for row in rows]

    async def get_client(self, client_id: str) -> Optional[ClientInfo]:
        for client in await self.list_clients():
            if client.id == client_id:
                return client
        return None


def _row_to_stored(row: Report) -> StoredReport:
    report = GeneratedReport(
        metadata=ReportMetadata(
            client_name=row.client_name,
            session_date=row.session_date,
            session_duration=row.session_duration or "",
            location=row.location or "",
            rbt_name=row.rbt_name or "",
        ),
        full_content=row.full_content,
        sections={section.name: section.content for section in row.sections},
        status=ReportStatus(row.status),
    )
    return StoredReport(
        id=row.id,
        session_id=row.session_id,
        user_id=row.user_id,
        client_id=row.client_id,
        report=report,
        created_at=row.created_at or datetime.now(),
        updated_at=row.updated_at,
    )


class ReportService:
    """Database-backed report store"""

    async def save(self, report: GeneratedReport, session_id: str,
                   user_id: str, client_id: str) -> str:
        metadata = report.metadata
        row = Report(
            session_id=session_id,
            user_id=user_id,
            client_id=client_id,
            client_name=metadata.client_name,
            session_date=metadata.session_date,
            session_duration=metadata.session_duration,
            location=metadata.location,
            rbt_name=metadata.rbt_name,
            full_content=report.full_content,
            status=ReportStatus.DRAFT.value,
            sections=[
                ReportSection(name=name, position=position, content=content)
                for position, (name, content) in enumerate(report.sections.items())
            ],
        )

        try:
            async with session_scope() as session:
                session.add(row)
                await session.flush()
                report_id = row.id
        except SQLAlchemyError as e:
            logger.error(f"Failed to save report: {e}")
            raise PersistenceError(f"Could not save report: {e}") from e

        logger.info(f"Saved report {report_id} for client {client_id}")
        return report_id

    async def get(self, report_id: str) -> Optional[StoredReport]:
        try:
            async with session_scope() as session:
                row = await session.get(Report, report_id)
                return _row_to_stored(row) if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load report {report_id}: {e}")
            raise PersistenceError(f"Could not load report: {e}") from e

    async def list_reports(self, user_id: Optional[str] = None,
                           client_id: Optional[str] = None) -> List[StoredReport]:
        query = select(Report).order_by(Report.created_at.desc())
        if user_id:
            query = query.where(Report.user_id == user_id)
        if client_id:
            query = query.where(Report.client_id == client_id)

        try:
            async with session_scope() as session:
                result = await session.execute(query)
                return [_row_to_stored(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list reports: {e}")
            raise PersistenceError(f"Could not list reports: {e}") from e

    async def update_status(self, report_id: str, status: ReportStatus) -> StoredReport:
        try:
            async with session_scope() as session:
                row = await session.get(Report, report_id)
                if row is None:
                    raise KeyError(report_id)
                row.status = ReportStatus(status).value
                await session.flush()
                await session.refresh(row)
                stored = _row_to_stored(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update report {report_id}: {e}")
            raise PersistenceError(f"Could not update report: {e}") from e

        logger.info(f"Report {report_id} status -> {stored.report.status.value}")
        return stored


class AuditService:
    """Service for audit logging"""

    async def log_activity(
        self,
        user_id: str,
        action: str,
        resource: str,
        resource_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ):
        """Log user activity"""
        logger.info(
            f"AUDIT: user={user_id} action={action} resource={resource} "
            f"resource_id={resource_id} metadata={metadata}"
        )
        try:
            async with session_scope() as session:
                session.add(AuditLog(
                    user_id=user_id,
                    action=action,
                    resource=resource,
                    resource_id=resource_id,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    extra_metadata=metadata,
                ))
        except Exception as e:
            logger.error(f"Failed to log audit entry: {e}")

    async def get_logs(self, skip: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
        """Get audit logs, newest first"""
        async with session_scope() as session:
            result = await session.execute(
                select(AuditLog).order_by(AuditLog.timestamp.desc()).offset(skip).limit(limit)
            )
            return [
                {
                    "id": log.id,
                    "user_id": log.user_id,
                    "action": log.action,
                    "resource": log.resource,
                    "resource_id": log.resource_id,
                    "metadata": log.extra_metadata,
                    "timestamp": log.timestamp,
                }
                for log in result.scalars().all()
            ]


# Service instances
client_directory_service = ClientDirectoryService()
report_service = ReportService()
audit_service = AuditService()
