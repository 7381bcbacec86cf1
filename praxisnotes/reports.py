"""
Report assembly, local report storage and the client directory
"""
import logging
from datetime import datetime
from typing import List, Optional, Protocol

from pydantic import BaseModel, Field

from .config import CLIENTS_DB, DEFAULT_CLIENTS, LOCATION_LABELS, REPORTS_DB
from .models import (
    ClientInfo,
    GeneratedReport,
    ReportMetadata,
    ReportStatus,
    SessionFormState,
)
from .prompting import format_duration
from .sections import SectionExtractor, parse_sections
from .utils import load_json, save_json

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A report could not be stored or updated."""


class StoredReport(BaseModel):
    id: str
    session_id: str
    user_id: str
    client_id: str
    report: GeneratedReport
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None


# --- ASSEMBLY ---
def build_report_metadata(state: SessionFormState, client: ClientInfo, rbt_name: str) -> ReportMetadata:
    info = state.basic_info
    return ReportMetadata(
        client_name=client.full_name,
        session_date=info.session_date,
        session_duration=format_duration(info.start_time, info.end_time),
        location=LOCATION_LABELS.get(info.location, info.location),
        rbt_name=rbt_name,
    )


def build_report(full_text: str, metadata: ReportMetadata,
                 extractor: Optional[SectionExtractor] = None) -> GeneratedReport:
    """Wrap finished generation output as a draft report."""
    return GeneratedReport(
        metadata=metadata,
        full_content=full_text,
        sections=parse_sections(full_text, extractor),
        status=ReportStatus.DRAFT,
    )


# --- STORAGE ---
class ReportStore(Protocol):
    async def save(self, report: GeneratedReport, session_id: str,
                   user_id: str, client_id: str) -> str:
        ...

    async def get(self, report_id: str) -> Optional[StoredReport]:
        ...

    async def list_reports(self, user_id: Optional[str] = None,
                           client_id: Optional[str] = None) -> List[StoredReport]:
        ...

    async def update_status(self, report_id: str, status: ReportStatus) -> StoredReport:
        ...


class JsonReportStore:
    """Keeps reports in a single JSON file, like the local case database."""

    def __init__(self, path: str = REPORTS_DB):
        self.path = path

    def _load(self) -> dict:
        try:
            return load_json(self.path, {"reports": []})
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read report database: {e}") from e

    def _write(self, db: dict):
        try:
            save_json(self.path, db)
        except (OSError, TypeError) as e:
            raise PersistenceError(f"Could not write report database: {e}") from e

    async def save(self, report: GeneratedReport, session_id: str,
                   user_id: str, client_id: str) -> str:
        db = self._load()
        # New reports always start as drafts; status moves only through update_status
        report = report.model_copy(update={"status": ReportStatus.DRAFT})
        report_id = f"report_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(db['reports'])}"
        stored = StoredReport(
            id=report_id,
            session_id=session_id,
            user_id=user_id,
            client_id=client_id,
            report=report,
        )
        db["reports"].append(stored.model_dump(mode="json"))
        self._write(db)
        logger.info(f"Saved report {report_id} for client {client_id}")
        return report_id

    async def get(self, report_id: str) -> Optional[StoredReport]:
        for entry in self._load()["reports"]:
            if entry["id"] == report_id:
                return StoredReport.model_validate(entry)
        return None

    async def list_reports(self, user_id: Optional[str] = None,
                           client_id: Optional[str] = None) -> List[StoredReport]:
        reports = [StoredReport.model_validate(entry) for entry in self._load()["reports"]]
        if user_id:
            reports = [r for r in reports if r.user_id == user_id]
        if client_id:
            reports = [r for r in reports if r.client_id == client_id]
        return sorted(reports, key=lambda r: r.created_at, reverse=True)

    async def update_status(self, report_id: str, status: ReportStatus) -> StoredReport:
        db = self._load()
        for index, entry in enumerate(db["reports"]):
            if entry["id"] != report_id:
                continue
            stored = StoredReport.model_validate(entry)
            updated = stored.model_copy(update={
                "report": stored.report.model_copy(update={"status": ReportStatus(status)}),
                "updated_at": datetime.now(),
            })
            db["reports"][index] = updated.model_dump(mode="json")
            self._write(db)
            logger.info(f"Report {report_id} status -> {updated.report.status.value}")
            return updated
        raise KeyError(report_id)


# --- CLIENT DIRECTORY ---
class ClientDirectory:
    """Read-only client lookup backed by a JSON file or the sample clients."""

    def __init__(self, path: str = CLIENTS_DB):
        self.path = path

    def list_clients(self) -> List[ClientInfo]:
        data = load_json(self.path, {"clients": DEFAULT_CLIENTS})
        return [ClientInfo.model_validate(entry) for entry in data.get("clients", [])]

    def get_client(self, client_id: str) -> Optional[ClientInfo]:
        for client in self.list_clients():
            if client.id == client_id:
                return client
        return None
