"""
Pydantic models for API request/response schemas
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List
from datetime import datetime

from praxisnotes.config import DEFAULT_MODEL, DEFAULT_RBT_NAME
from praxisnotes.models import (
    GeneratedReport,
    ReportMetadata,
    ReportStatus,
    SessionFormState,
)


class ValidationResponse(BaseModel):
    """Result of validating one wizard step"""
    step: str
    valid: bool
    field_errors: Dict[str, str] = Field(default_factory=dict)


class PromptPreviewRequest(BaseModel):
    form: SessionFormState
    rbt_name: str = DEFAULT_RBT_NAME


class PromptPreviewResponse(BaseModel):
    prompt: str
    metadata: ReportMetadata


class GenerateReportRequest(BaseModel):
    """Request model for report generation"""
    form: SessionFormState
    model: str = Field(default=DEFAULT_MODEL, description="AI model to use")
    rbt_name: str = Field(default=DEFAULT_RBT_NAME, description="Name shown on the report")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "form": {
                    "flow": "structured",
                    "basic_info": {
                        "session_date": "2024-05-01",
                        "start_time": "09:00",
                        "end_time": "10:30",
                        "location": "home",
                        "client_id": "c1"
                    }
                },
                "model": "Llama3.2",
                "rbt_name": "Jordan Smith"
            }
        }
    )


class SaveReportRequest(BaseModel):
    """A finished (possibly edited) report to persist"""
    report: GeneratedReport
    session_id: str
    client_id: str


class SaveReportResponse(BaseModel):
    report_id: str
    status: ReportStatus


class ReportListItem(BaseModel):
    """Model for report list items"""
    id: str
    client_id: str
    client_name: str
    session_date: str
    status: ReportStatus
    user_id: str
    created_at: datetime


class StatusUpdateRequest(BaseModel):
    status: ReportStatus


class ConversionRequest(BaseModel):
    content: str = ""


class ConversionResponse(BaseModel):
    content: str


class HealthCheck(BaseModel):
    """Health check response"""
    status: str
    service: str
    version: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
