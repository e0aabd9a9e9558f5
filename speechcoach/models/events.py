"""Event models published over pypubsub."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class SessionEvent:
    """Recording session lifecycle event."""
    event_type: str  # "started", "chunk", "stopped", "error"
    session_id: str
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OperationEvent:
    """Outcome of an orchestrated coaching operation."""
    operation: str  # "simplify", "transcribe", "feedback", "keyword", "summary"
    status: str     # "started", "completed", "error", "discarded"
    result: Any = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
