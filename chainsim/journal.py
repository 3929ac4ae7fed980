"""
Traffic journal: a bounded log of exchanges answered by the simulator.

Request bodies are redacted before storage so raw signed transactions and
long calldata blobs do not end up in the log verbatim.
"""

import json
import re
import threading
from typing import Any, List, Optional, Tuple
from urllib.parse import urlsplit

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from chainsim.database import Base
from chainsim.database import engine as default_engine
from chainsim.models import TrafficEvent

MAX_EVENTS = 5000
MAX_BODY_CHARS = 2000
REDACTED = "[redacted]"

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")


def clip(text: str, limit: int = MAX_BODY_CHARS) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def _redact_hex(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    s = value.strip()
    # Hashes and addresses fit in 66 chars and stay readable.
    if not _HEX_RE.match(s) or len(s) <= 66:
        return value
    return f"0x{s[2:18]}...{s[-16:]}"


def redact_payload(payload: Any) -> Any:
    if isinstance(payload, list):
        return [redact_payload(item) for item in payload]
    if not isinstance(payload, dict):
        return _redact_hex(payload)

    out = {}
    for key, value in payload.items():
        if key == "params" and isinstance(value, list) and payload.get("method") == "eth_sendRawTransaction":
            out[key] = [REDACTED]
            continue
        out[key] = redact_payload(value)
    return out


def describe_body(body) -> Tuple[Optional[str], bool, int, Optional[str]]:
    """Return (rpc_method, is_batch, batch_size, stored_text) for a request body."""
    if body is None or body == b"" or body == "":
        return None, False, 0, None
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else str(body)
    try:
        payload = json.loads(text)
    except ValueError:
        return None, False, 0, clip(text)

    stored = clip(json.dumps(redact_payload(payload), separators=(",", ":")))
    if isinstance(payload, list):
        methods = [item.get("method") for item in payload if isinstance(item, dict) and item.get("method")]
        first = methods[0] if methods and isinstance(methods[0], str) else None
        return first, True, len(payload), stored
    if isinstance(payload, dict):
        method = payload.get("method")
        return (method if isinstance(method, str) else None), False, 1, stored
    return None, False, 0, stored


def record_event(
    db: Session,
    *,
    http_method: str,
    url: str,
    status: int,
    variant: str,
    body=None,
    max_events: int = MAX_EVENTS,
) -> TrafficEvent:
    rpc_method, is_batch, batch_size, stored = describe_body(body)
    event = TrafficEvent(
        http_method=http_method.upper(),
        url=url,
        host=urlsplit(url).hostname or "",
        status=status,
        variant=variant,
        rpc_method=rpc_method,
        is_batch=is_batch,
        batch_size=batch_size,
        request_body=stored,
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    # Rolling buffer: drop the oldest rows beyond the limit.
    excess = db.query(func.count(TrafficEvent.id)).scalar() - max_events
    if excess > 0:
        oldest = [row.id for row in db.query(TrafficEvent.id).order_by(TrafficEvent.id).limit(excess)]
        db.query(TrafficEvent).filter(TrafficEvent.id.in_(oldest)).delete(synchronize_session=False)
        db.commit()
    return event


def list_events(db: Session, rpc_method: Optional[str] = None, limit: Optional[int] = None) -> List[TrafficEvent]:
    query = db.query(TrafficEvent)
    if rpc_method:
        query = query.filter(TrafficEvent.rpc_method == rpc_method)
    query = query.order_by(TrafficEvent.id)
    if limit:
        # Newest `limit` rows, still returned oldest first.
        rows = query.order_by(None).order_by(TrafficEvent.id.desc()).limit(limit).all()
        return list(reversed(rows))
    return query.all()


def clear_events(db: Session) -> int:
    deleted = db.query(TrafficEvent).delete(synchronize_session=False)
    db.commit()
    return deleted


class TrafficJournal:
    """
    Thread-safe journal bound to its own engine.

    Used by the HTTP client transports, which have no request-scoped session.
    """

    def __init__(self, engine=None, max_events: int = MAX_EVENTS):
        self.engine = engine if engine is not None else default_engine
        self.max_events = max_events
        self._sessions = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self._lock = threading.Lock()
        Base.metadata.create_all(bind=self.engine)

    def record(self, *, http_method: str, url: str, status: int, variant: str, body=None) -> None:
        with self._lock, self._sessions() as db:
            record_event(
                db,
                http_method=http_method,
                url=url,
                status=status,
                variant=variant,
                body=body,
                max_events=self.max_events,
            )

    def events(self, rpc_method: Optional[str] = None) -> List[TrafficEvent]:
        with self._lock, self._sessions(expire_on_commit=False) as db:
            rows = list_events(db, rpc_method=rpc_method)
            db.expunge_all()
            return rows

    def count(self, rpc_method: Optional[str] = None) -> int:
        return len(self.events(rpc_method))

    def clear(self) -> int:
        with self._lock, self._sessions() as db:
            return clear_events(db)
