from fastapi import APIRouter, Depends, HTTPException, Query

from storebot.api.v1.schemas import DebugListResponseSchema, DebugRequestSchema
from storebot.application.ports.debug_recorder import DebugRecorderPort
from storebot.wiring.dependencies import get_debug_recorder

router = APIRouter()


@router.get("/debug/requests", response_model=DebugListResponseSchema)
def list_requests(
    limit: int = Query(default=20, ge=1, le=100),
    recorder: DebugRecorderPort = Depends(get_debug_recorder),
):
    records = recorder.list_requests(limit=limit)
    return DebugListResponseSchema(requests=[DebugRequestSchema(**r.to_dict()) for r in records])


@router.get("/debug/requests/{request_id}", response_model=DebugRequestSchema)
def get_request(
    request_id: str,
    recorder: DebugRecorderPort = Depends(get_debug_recorder),
):
    record = recorder.get(request_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Request {request_id} not found")
    return DebugRequestSchema(**record.to_dict())
