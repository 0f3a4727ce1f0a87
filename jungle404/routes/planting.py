import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from ..core import InvalidInput, NotFound, PlantingLedger, parse_confirm_payload
from ..planting_metrics import log_planting_event

router = APIRouter()


def json_response(data: Dict[str, Any], status_code: int = 200) -> Response:
    return Response(content=json.dumps(data), media_type="application/json", status_code=status_code)


def get_ledger(request: Request) -> PlantingLedger:
    return request.app.state.ledger


def request_origin(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post("/planting-intents")
def create_planting_intent(request: Request) -> Response:
    intent_id = get_ledger(request).create_intent(origin=request_origin(request))
    return json_response({"intent_id": intent_id})


@router.post("/confirm")
async def confirm_planting(request: Request) -> Response:
    origin = request_origin(request)
    body = await request.body()
    try:
        intent_id = parse_confirm_payload(body)
    except InvalidInput:
        await run_in_threadpool(
            log_planting_event, event="invalid_payload", origin=origin, status="rejected", reason="invalid_json"
        )
        return json_response({"error": "Invalid JSON"}, status_code=400)
    try:
        planting_id = await run_in_threadpool(get_ledger(request).confirm_intent, intent_id, origin=origin)
    except NotFound:
        return json_response({"error": "Intent not found"}, status_code=404)
    return json_response({"planting_id": planting_id})


@router.get("/proofs")
def planting_proof(request: Request, planting_id: Optional[str] = None) -> Response:
    try:
        proof = get_ledger(request).get_proof(planting_id)
    except NotFound:
        return json_response({"error": "Planting order not found"}, status_code=404)
    return json_response(proof.as_dict())
