"""Runner API: trigger runs and inspect admission state."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..errors import AdmissionError
from ..manager import RunManager
from ..persistence import RunRepository


class TriggerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    run_id: Optional[str] = Field(default=None, alias="runId")
    workflow: Any = None


def create_runner_router(
    manager: RunManager, repository: Optional[RunRepository] = None
) -> APIRouter:
    router = APIRouter()

    @router.post("/run", status_code=202)
    async def trigger_run(body: TriggerRequest):
        try:
            await manager.enqueue(body.run_id or "", body.workflow)
        except AdmissionError as e:
            return JSONResponse(status_code=e.status_code, content=e.to_dict())
        return {"accepted": True, "runId": body.run_id}

    @router.get("/metrics")
    async def metrics():
        return manager.get_metrics()

    @router.get("/runs/{run_id}")
    async def get_run(run_id: str):
        if repository is not None:
            run = await repository.get_run(run_id)
            if run is not None:
                return run.model_dump(mode="json")
        record = manager.get_record(run_id)
        if record is not None:
            return record.model_dump(mode="json", by_alias=True)
        return JSONResponse(status_code=404, content={"error": "not_found"})

    @router.post("/runs/{run_id}/cancel", status_code=202)
    async def cancel_run(run_id: str):
        if not manager.cancel(run_id):
            return JSONResponse(status_code=404, content={"error": "run_not_active"})
        return {"cancelled": True, "runId": run_id}

    @router.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return router
