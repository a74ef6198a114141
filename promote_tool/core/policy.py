# promote_tool/core/policy.py
"""Promotion policy

Pure decision logic: given the configured edges, a ledger snapshot, the
current time and an optional approval token, decide whether a version may
move from one environment to the next. Nothing here performs I/O, so the
same inputs always yield the same decision.
"""

import hashlib
import hmac
from datetime import datetime
from typing import Iterable, Optional

from ..models import DenialReason, PolicyDecision, PromotionEdge, Version
from ..utils.time_utils import format_duration
from ..utils.version_utils import classify_change
from .ledger import LedgerSnapshot


class ApprovalVerifier:
    """Issues and checks approval tokens bound to (target, version)

    A token is the HMAC-SHA256 of ``"<target>:<version>"`` keyed with the
    project's approval secret. Without a secret no token verifies.
    """

    def __init__(self, secret: Optional[str]):
        self._secret = secret.encode('utf-8') if secret else None

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def issue(self, target: str, version: Version) -> str:
        if self._secret is None:
            raise ValueError("No approval secret configured")
        message = f"{target}:{version}".encode('utf-8')
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def verify(self, token: Optional[str], target: str, version: Version) -> bool:
        if not token or self._secret is None:
            return False
        return hmac.compare_digest(token.strip().lower(), self.issue(target, version))


class PromotionPolicy:
    """Decides whether a candidate may be promoted along an edge"""

    def __init__(self, edges: Iterable[PromotionEdge], approvals: ApprovalVerifier):
        self._edges = {edge.key: edge for edge in edges}
        self.approvals = approvals

    def get_edge(self, source: str, target: str) -> Optional[PromotionEdge]:
        return self._edges.get((source, target))

    def can_promote(self,
                    source: str,
                    target: str,
                    candidate: Optional[Version],
                    snapshot: LedgerSnapshot,
                    now: datetime,
                    approval_token: Optional[str] = None) -> PolicyDecision:
        """Evaluate promotion rules in order; the first failing rule wins

        1. an edge source -> target must be configured
        2. candidate must be exactly what source is running
        3. candidate must not be older than what target is running
        4. the change class must be allowed on the edge
        5. candidate must have soaked in source for longer than the edge requires
        6. an approval token for (target, candidate) must be presented if required
        """
        edge = self.get_edge(source, target)
        if edge is None:
            return PolicyDecision.deny(
                DenialReason.NO_SUCH_EDGE,
                f"No promotion path from {source} to {target}"
            )

        source_version = snapshot.current_version(source)
        if source_version is None:
            return PolicyDecision.deny(
                DenialReason.VERSION_MISMATCH,
                f"Nothing is deployed to {source}"
            )
        if candidate != source_version:
            return PolicyDecision.deny(
                DenialReason.VERSION_MISMATCH,
                f"Candidate {candidate} is not the version running in {source} ({source_version})"
            )

        target_version = snapshot.current_version(target)
        if target_version is not None and candidate < target_version:
            return PolicyDecision.deny(
                DenialReason.WOULD_DOWNGRADE,
                f"{target} runs {target_version}; {candidate} would be a downgrade (use rollback)"
            )

        change = classify_change(target_version, candidate)
        if change is not None and change not in edge.allowed_changes:
            return PolicyDecision.deny(
                DenialReason.CHANGE_NOT_ALLOWED,
                f"{change.value} changes are not allowed from {source} to {target}"
            )

        if edge.soak_time > 0:
            arrival = snapshot.last_arrival(source, candidate)
            if arrival is None:
                return PolicyDecision.deny(
                    DenialReason.SOAK_TIME_NOT_ELAPSED,
                    f"No record of when {source} moved to {candidate}"
                )
            soaked = (now - arrival.timestamp).total_seconds()
            if soaked <= edge.soak_time:
                return PolicyDecision.deny(
                    DenialReason.SOAK_TIME_NOT_ELAPSED,
                    f"{candidate} has run in {source} for {format_duration(max(soaked, 0))}; "
                    f"{format_duration(edge.soak_time)} required"
                )

        if edge.requires_approval and not self.approvals.verify(approval_token, target, candidate):
            message = f"Promotion of {candidate} to {target} requires approval"
            if approval_token:
                message = f"Approval token is not valid for {target} {candidate}"
            return PolicyDecision.deny(DenialReason.APPROVAL_REQUIRED, message)

        return PolicyDecision.allow()
