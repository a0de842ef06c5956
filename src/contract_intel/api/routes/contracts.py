"""
Contract management routes.

Every response uses the {ok, data} / {ok, error} envelope.
"""

from pathlib import Path
from typing import Any
from uuid import uuid4

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from contract_intel.api.dependencies import (
    get_contract_service,
    get_orchestrator,
    get_services,
)
from contract_intel.exceptions import ValidationError
from contract_intel.models.contract import ContractRecord, ContractStatus, RiskLevel
from contract_intel.pipeline.orchestrator import AnalysisOrchestrator
from contract_intel.services.contract_service import ContractService

logger = structlog.get_logger(__name__)
router = APIRouter()


def _record(record: ContractRecord) -> dict[str, Any]:
    return record.model_dump(mode="json")


@router.post("/upload", status_code=201)
async def upload_contract(
    request: Request,
    contract: UploadFile = File(...),
    title: str | None = Form(default=None, min_length=1, max_length=200),
    contracts: ContractService = Depends(get_contract_service),
) -> dict[str, Any]:
    """
    Upload a PDF or text contract and extract its text.
    """
    settings = get_services(request).settings

    if contract.content_type not in settings.allowed_mime_types:
        raise ValidationError("Invalid file type. Only PDF and text files are allowed.")

    content = await contract.read()
    if len(content) > settings.max_file_size:
        raise ValidationError(
            f"File too large. Maximum size is {settings.max_file_size // (1024 * 1024)}MB"
        )

    file_name = contract.filename or "contract"
    stored_path = Path(settings.upload_dir) / f"contract-{uuid4().hex}{Path(file_name).suffix}"
    stored_path.parent.mkdir(parents=True, exist_ok=True)
    stored_path.write_bytes(content)

    try:
        record = await contracts.create_contract(
            stored_path, file_name, contract.content_type, title
        )
    except Exception:
        stored_path.unlink(missing_ok=True)
        raise

    logger.info(
        "contract_uploaded",
        contract_id=record.id,
        filename=file_name,
        file_type=record.file_type.value,
        chars=len(record.raw_text),
    )
    return {"ok": True, "data": _record(record)}


@router.post("/{contract_id}/analyze", response_model=None)
async def analyze_contract(
    contract_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any] | JSONResponse:
    """
    Run the AI analysis pipeline for a contract.

    A failed run answers 400 with the failed record attached.
    """
    outcome = await orchestrator.analyze(contract_id)

    if not outcome.ok:
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "error": outcome.error,
                "data": _record(outcome.record) if outcome.record else None,
            },
        )
    return {"ok": True, "data": _record(outcome.record)}


@router.get("")
async def list_contracts(
    status: ContractStatus | None = None,
    risk_level: RiskLevel | None = Query(default=None, alias="riskLevel"),
    limit: int = Query(default=100, ge=1, le=500),
    contracts: ContractService = Depends(get_contract_service),
) -> dict[str, Any]:
    """List contracts, newest first."""
    records = await contracts.list_contracts(status, risk_level, limit)
    return {"ok": True, "data": [_record(r) for r in records]}


@router.get("/stats/dashboard")
async def dashboard_stats(
    contracts: ContractService = Depends(get_contract_service),
) -> dict[str, Any]:
    stats = await contracts.dashboard_stats()
    return {"ok": True, "data": stats.model_dump()}


@router.get("/deadlines/upcoming")
async def upcoming_deadlines(
    contracts: ContractService = Depends(get_contract_service),
) -> dict[str, Any]:
    deadlines = await contracts.list_upcoming_deadlines()
    return {"ok": True, "data": [d.model_dump(mode="json") for d in deadlines]}


@router.get("/{contract_id}")
async def get_contract(
    contract_id: str,
    contracts: ContractService = Depends(get_contract_service),
) -> dict[str, Any]:
    record = await contracts.get_contract(contract_id)
    return {"ok": True, "data": _record(record)}


@router.delete("/{contract_id}")
async def delete_contract(
    contract_id: str,
    contracts: ContractService = Depends(get_contract_service),
) -> dict[str, Any]:
    result = await contracts.delete_contract(contract_id)
    return {"ok": True, "data": result.model_dump()}
