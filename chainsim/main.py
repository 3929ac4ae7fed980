"""
Standalone mock node.

Serves the simulator over HTTP so any client can point its RPC URL at it.
Every POST path is a JSON-RPC endpoint answered by the scenario's variant;
every answered exchange is written to the traffic journal.
"""

from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from sqlalchemy.orm import Session

from chainsim.config import configure_logging, get_settings
from chainsim.database import Base, engine, get_db
from chainsim.interceptor import Interceptor, build_interceptor
from chainsim.journal import clear_events, list_events, record_event
from chainsim.models import TrafficEvent  # noqa: F401
from chainsim.schemas import SyntheticResponse, TrafficEventOut

# The journal lives in the scenario database; nothing is migrated.
Base.metadata.create_all(bind=engine)

settings = get_settings()
configure_logging(settings.log_level)
interceptor = build_interceptor(settings)
if settings.fault_kind is not None:
    logger.info(f"Mock node started with {interceptor.variant.name} fault variant active")

app = FastAPI(title="Chain RPC Simulator")


def get_interceptor() -> Interceptor:
    return interceptor


@app.get("/health")
def health_check(active: Interceptor = Depends(get_interceptor)):
    return {"status": "healthy", "variant": active.variant.name}


@app.get("/journal", response_model=List[TrafficEventOut])
def read_journal(
    rpc_method: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """
    List recorded exchanges, oldest first.

    Args:
        rpc_method (str): Only exchanges whose (first) JSON-RPC method matches.
        limit (int): Only the newest `limit` exchanges.
    """
    return list_events(db, rpc_method=rpc_method, limit=limit)


@app.delete("/journal", status_code=status.HTTP_204_NO_CONTENT)
def delete_journal(db: Session = Depends(get_db)):
    clear_events(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def answer_and_record(
    active: Interceptor, db: Session, method: str, url: str, body: bytes
) -> SyntheticResponse:
    synthetic = active.synthesize(method, url, body)
    record_event(
        db,
        http_method=method,
        url=url,
        status=synthetic.status,
        variant=active.variant_for(method),
        body=body,
        max_events=settings.journal_max_events,
    )
    return synthetic


@app.api_route("/{path:path}", methods=["POST", "OPTIONS"])
async def rpc_endpoint(
    request: Request,
    active: Interceptor = Depends(get_interceptor),
    db: Session = Depends(get_db),
):
    """
    Answer a JSON-RPC POST or a CORS preflight.

    The host is not checked here: everything sent to this server targets the
    simulated node. Only reading the body happens on the event loop; the
    journal commit runs in the threadpool.
    """
    body = await request.body()
    synthetic = await run_in_threadpool(
        answer_and_record, active, db, request.method, str(request.url), body
    )
    return Response(content=synthetic.body, status_code=synthetic.status, headers=synthetic.headers)
