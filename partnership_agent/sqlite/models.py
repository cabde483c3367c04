
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
)

from partnership_agent.sqlite.database import Base
from partnership_agent.utils.timing import utc_now


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    thread_id = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    model_id = Column(String, nullable=True)
    metadata_json = Column(Text, nullable=True)
    date_inserted = Column(DateTime, default=utc_now, nullable=False, index=True)


class QueryLog(Base):
    __tablename__ = "query_logs"

    id = Column(Integer, primary_key=True, index=True)
    thread_id = Column(String, nullable=False, index=True)
    tenant_id = Column(String, nullable=False)
    user_id = Column(String, nullable=False)
    query = Column(String, nullable=False)
    answer = Column(Text, nullable=True)
    confidence_level = Column(String, nullable=True)
    needs_clarification = Column(Boolean, default=False, nullable=False)
    documents_found = Column(Integer, default=0, nullable=False)
    citation_count = Column(Integer, default=0, nullable=False)
    processing_time_seconds = Column(Float, nullable=True)
    final_state = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
