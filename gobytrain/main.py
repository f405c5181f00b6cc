from __future__ import annotations

from typing import Any, Dict

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from gobytrain.config import get_settings
from gobytrain.orchestrator import SearchSession, SessionRegistry, run_search
from gobytrain.partners import checkout_summary
from gobytrain.ranking import SORT_KEYS
from gobytrain.schemas import PartnerLinkRequest, SearchQuery, SearchResult
from gobytrain.stations import suggest, validate_form

settings = get_settings()

app = FastAPI(title="GoByTrain Route Search API")

# Local front ends (Next.js dev server, static builds) call this API directly.
# Operators can scope this via GOBYTRAIN_ALLOWED_ORIGINS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

sessions = SessionRegistry(
    max_sessions=settings.max_sessions,
    latency_seconds=settings.search_latency_seconds,
)


def _query_from_payload(payload: Dict[str, Any]) -> SearchQuery:
    """Validate a search payload, applying the strict form rules when enabled."""
    try:
        query = SearchQuery.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()) from exc

    if get_settings().strict_stations:
        problem = validate_form(
            query.origin,
            query.destination,
            _raw(payload, "maxPrice", "max_price"),
            _raw(payload, "maxDurationHours", "max_duration_hours", "maxDuration"),
            strict=True,
        )
        if problem:
            raise HTTPException(status_code=422, detail=problem)
    return query


def _raw(payload: Dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        if payload.get(key) is not None:
            return str(payload[key])
    return None


def _session_for(payload: Dict[str, Any]) -> SearchSession:
    session_id = payload.get("session")
    session = sessions.get(str(session_id)) if session_id else None
    if session is None or not session.has_results:
        raise HTTPException(status_code=404, detail="Unknown search session; run a search first.")
    return session


def _result_payload(result: SearchResult) -> Dict[str, Any]:
    return {"status": "ok", **result.model_dump(mode="json", by_alias=True)}


@app.post("/api/search")
async def api_search(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Generate and rank itineraries; with ``session`` set, newer searches win."""
    query = _query_from_payload(payload)
    session_id = payload.get("session")
    if not session_id:
        return _result_payload(run_search(query))

    session = sessions.get_or_create(str(session_id))
    result = await session.search(query)
    if result is None:
        return {"status": "superseded", "session": str(session_id)}
    return _result_payload(result)


@app.post("/api/refine")
async def api_refine(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    session = _session_for(payload)
    try:
        query = SearchQuery.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()) from exc
    return _result_payload(session.refine(query))


@app.post("/api/sort")
async def api_sort(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    key = payload.get("key")
    if key not in SORT_KEYS:
        raise HTTPException(status_code=422, detail=f"Sort key must be one of {', '.join(SORT_KEYS)}.")
    session = _session_for(payload)
    return _result_payload(session.select_sort(key))


@app.get("/api/stations")
async def api_stations(q: str = Query("")) -> Dict[str, Any]:
    return {"stations": suggest(q)}


@app.post("/api/checkout")
async def api_checkout(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Partner hand-off; ``available`` is false when no link can be built."""
    try:
        request = PartnerLinkRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors()) from exc
    return checkout_summary(request).model_dump(mode="json", by_alias=True)
