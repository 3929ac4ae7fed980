from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from chainsim.database import Base


class TrafficEvent(Base):
    """
    One exchange answered by the simulator.

    Rows are an observation log for tests. Synthesis never reads them, so
    recording has no effect on what the simulator returns.
    """
    __tablename__ = "traffic_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    http_method = Column(String, nullable=False)
    url = Column(String, nullable=False)
    host = Column(String, nullable=False)
    status = Column(Integer, nullable=False)
    variant = Column(String, nullable=False)
    rpc_method = Column(String, nullable=True, index=True)
    is_batch = Column(Boolean, nullable=False, default=False)
    batch_size = Column(Integer, nullable=False, default=0)
    request_body = Column(Text, nullable=True)
