# promote_tool/models/transition.py
"""Audit trail entries"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .version import Version
from ..utils.time_utils import format_timestamp, parse_timestamp, utcnow


class TransitionKind(Enum):
    DEPLOY = "deploy"
    PROMOTION = "promotion"
    ROLLBACK = "rollback"
    PRE_ROLLBACK_SNAPSHOT = "pre_rollback_snapshot"


class TransitionOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"  # deploy undone after failed verification
    RECORDED = "recorded"        # marker only, no state change


def new_record_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class TransitionRecord:
    """Immutable audit entry for one attempted state change"""
    kind: TransitionKind
    target_env: str
    to_version: Version
    outcome: TransitionOutcome
    actor: str
    from_version: Optional[Version] = None
    source_env: Optional[str] = None
    failed_step: Optional[str] = None
    detail: str = ""
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_record_id)

    @property
    def succeeded(self) -> bool:
        return self.outcome == TransitionOutcome.SUCCEEDED

    @property
    def changes_state(self) -> bool:
        """True for records that moved an environment to to_version"""
        return self.succeeded and self.kind != TransitionKind.PRE_ROLLBACK_SNAPSHOT

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'kind': self.kind.value,
            'source_env': self.source_env,
            'target_env': self.target_env,
            'from_version': str(self.from_version) if self.from_version else None,
            'to_version': str(self.to_version),
            'outcome': self.outcome.value,
            'timestamp': format_timestamp(self.timestamp),
            'actor': self.actor,
        }
        if self.failed_step:
            data['failed_step'] = self.failed_step
        if self.detail:
            data['detail'] = self.detail
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TransitionRecord':
        from_version = data.get('from_version')
        return cls(
            id=data['id'],
            kind=TransitionKind(data['kind']),
            source_env=data.get('source_env'),
            target_env=data['target_env'],
            from_version=Version.parse(from_version) if from_version else None,
            to_version=Version.parse(data['to_version']),
            outcome=TransitionOutcome(data['outcome']),
            timestamp=parse_timestamp(data['timestamp']),
            actor=data.get('actor', 'unknown'),
            failed_step=data.get('failed_step'),
            detail=data.get('detail', ""),
        )
