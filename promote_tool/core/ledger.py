# promote_tool/core/ledger.py
"""Durable version ledger

The ledger is the source of truth for which version every environment runs,
which releases exist, and the audit trail of every attempted transition.
It is persisted as a single JSON document (``infrastructure-version.json``
by default). Writes go through a temp file and ``os.replace`` so readers
never see a half-written document, and every read-modify-write cycle runs
under an in-process re-entrant lock plus an ``fcntl`` lock on a sidecar
file so separate processes do not lose each other's updates.
"""

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..api.exceptions import (
    DuplicateVersionError,
    LedgerCorruptError,
    LedgerInconsistencyError,
    UnknownEnvironmentError,
    UnknownVersionError,
)
from ..constants import DEFAULT_HISTORY_LIMIT, LEDGER_LOCK_SUFFIX, LEDGER_SCHEMA_VERSION
from ..models import (
    EnvironmentState,
    Release,
    TransitionKind,
    TransitionOutcome,
    TransitionRecord,
    Version,
)
from ..utils.file_utils import atomic_write_json, file_lock, read_json
from ..utils.time_utils import format_timestamp, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable point-in-time view of the ledger"""
    states: Mapping[str, EnvironmentState] = field(default_factory=dict)
    releases: Mapping[Version, Release] = field(default_factory=dict)
    transitions: Tuple[TransitionRecord, ...] = ()

    def current_version(self, environment: str) -> Optional[Version]:
        state = self.states.get(environment)
        return state.current_version if state else None

    def last_arrival(self, environment: str, version: Version) -> Optional[TransitionRecord]:
        """Most recent successful transition that moved environment to version"""
        for record in reversed(self.transitions):
            if record.target_env == environment and record.to_version == version and record.changes_state:
                return record
        return None


class _Document:
    """Mutable in-memory form of the ledger file"""

    def __init__(self):
        self.states: Dict[str, EnvironmentState] = {}
        self.releases: Dict[Version, Release] = {}
        self.transitions: List[TransitionRecord] = []

    @classmethod
    def from_dict(cls, data: Dict) -> '_Document':
        doc = cls()
        for name, state_data in (data.get('environments') or {}).items():
            doc.states[name] = EnvironmentState.from_dict(name, state_data)
        for release_data in data.get('releases') or []:
            release = Release.from_dict(release_data)
            doc.releases[release.version] = release
        doc.transitions = [TransitionRecord.from_dict(r) for r in data.get('transitions') or []]
        return doc

    def to_dict(self) -> Dict:
        return {
            'schema_version': LEDGER_SCHEMA_VERSION,
            'updated_at': format_timestamp(utcnow()),
            'environments': {name: state.to_dict() for name, state in sorted(self.states.items())},
            'releases': [release.to_dict() for release in self.releases.values()],
            'transitions': [record.to_dict() for record in self.transitions],
        }

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            states=MappingProxyType(dict(self.states)),
            releases=MappingProxyType(dict(self.releases)),
            transitions=tuple(self.transitions),
        )


class VersionLedger:
    """File-backed store of environment states, releases and transitions"""

    def __init__(self,
                 path: Path,
                 environments: Iterable[str],
                 history_limit: int = DEFAULT_HISTORY_LIMIT):
        """Initialize ledger

        Args:
            path: Ledger JSON file
            environments: Configured environment names
            history_limit: Number of prior versions kept per environment
        """
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + LEDGER_LOCK_SUFFIX)
        self.history_limit = history_limit
        self._environments = tuple(environments)
        self._lock = threading.RLock()

    @property
    def environments(self) -> Tuple[str, ...]:
        return self._environments

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> _Document:
        try:
            data = read_json(self.path)
        except json.JSONDecodeError as e:
            raise LedgerCorruptError(self.path, str(e))
        if data is None:
            return _Document()
        try:
            doc = _Document.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerCorruptError(self.path, f"{type(e).__name__}: {e}")
        self._check_consistency(doc)
        return doc

    def _check_consistency(self, doc: _Document) -> None:
        for name, state in doc.states.items():
            if state.current_version not in doc.releases:
                raise LedgerInconsistencyError(
                    f"Environment {name} is at {state.current_version} which has no release"
                )

    @contextmanager
    def _reading(self) -> Iterator[_Document]:
        with self._lock, file_lock(self.lock_path, shared=True):
            yield self._load()

    @contextmanager
    def _transaction(self) -> Iterator[_Document]:
        """Load, let the caller mutate, then persist atomically.

        Nothing is written if the body raises.
        """
        with self._lock, file_lock(self.lock_path):
            doc = self._load()
            yield doc
            self._check_consistency(doc)
            atomic_write_json(self.path, doc.to_dict())

    def _require_environment(self, environment: str) -> None:
        if environment not in self._environments:
            raise UnknownEnvironmentError(environment)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def snapshot(self) -> LedgerSnapshot:
        """Consistent read-only view of the whole ledger"""
        with self._reading() as doc:
            return doc.snapshot()

    def get_environment_state(self, environment: str) -> Optional[EnvironmentState]:
        """Get the state of a configured environment

        Returns:
            EnvironmentState, or None when nothing has been deployed yet

        Raises:
            UnknownEnvironmentError: If the environment is not configured
        """
        self._require_environment(environment)
        with self._reading() as doc:
            return doc.states.get(environment)

    def get_release(self, version) -> Optional[Release]:
        version = Version.parse(version)
        with self._reading() as doc:
            return doc.releases.get(version)

    def list_releases(self) -> List[Release]:
        """All releases, newest version first"""
        with self._reading() as doc:
            return sorted(doc.releases.values(), key=lambda r: r.version, reverse=True)

    def list_transitions(self,
                         environment: Optional[str] = None,
                         limit: Optional[int] = None) -> List[TransitionRecord]:
        """Transition records, newest first"""
        with self._reading() as doc:
            records = [
                r for r in reversed(doc.transitions)
                if environment is None or r.target_env == environment
            ]
        return records[:limit] if limit else records

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_release(self, release: Release) -> None:
        """Append a release

        Raises:
            DuplicateVersionError: If the version was already recorded
        """
        with self._transaction() as doc:
            if release.version in doc.releases:
                raise DuplicateVersionError(release.version)
            doc.releases[release.version] = release
        logger.info("Recorded release %s", release.version)

    def update_environment_state(self,
                                 environment: str,
                                 new_version,
                                 actor: str,
                                 kind: TransitionKind,
                                 source_env: Optional[str] = None,
                                 detail: str = "") -> TransitionRecord:
        """Move an environment to new_version and append the audit record

        Both changes are persisted in a single atomic write.

        Raises:
            UnknownEnvironmentError: If the environment is not configured
            UnknownVersionError: If new_version has no release
        """
        self._require_environment(environment)
        new_version = Version.parse(new_version)

        with self._transaction() as doc:
            if new_version not in doc.releases:
                raise UnknownVersionError(new_version)

            now = utcnow()
            current = doc.states.get(environment)
            record = TransitionRecord(
                kind=kind,
                source_env=source_env,
                target_env=environment,
                from_version=current.current_version if current else None,
                to_version=new_version,
                outcome=TransitionOutcome.SUCCEEDED,
                actor=actor,
                detail=detail,
                timestamp=now,
            )

            if current is None:
                doc.states[environment] = EnvironmentState(
                    name=environment, current_version=new_version, updated_at=now
                )
            else:
                doc.states[environment] = current.advance(new_version, now, self.history_limit)
            doc.transitions.append(record)

        logger.info("%s is now at %s (%s by %s)", environment, new_version, kind.value, actor)
        return record

    def append_transition(self, record: TransitionRecord) -> TransitionRecord:
        """Append an audit record that does not change environment state"""
        self._require_environment(record.target_env)
        if record.changes_state:
            raise LedgerInconsistencyError(
                "Successful transitions must go through update_environment_state"
            )
        with self._transaction() as doc:
            doc.transitions.append(record)
        logger.debug("Appended %s record for %s (%s)",
                     record.kind.value, record.target_env, record.outcome.value)
        return record
