# promote_tool/core/verification.py
"""Post-deploy verification"""

import logging
from typing import Dict, List, Mapping, Optional

from ..constants import DEFAULT_VERIFY_TIMEOUT, TIMEOUT_GRACE
from ..models import CheckResult, VerificationResult
from ..probes.base import HealthProbe
from ..utils.async_utils import CallTimeoutError, call_with_timeout

logger = logging.getLogger(__name__)


class VerificationRunner:
    """Runs an environment's probes and reduces them to healthy/unhealthy

    All checks must pass. The first unhealthy check stops the run and is
    reported. Retrying is left to the caller.
    """

    def __init__(self,
                 probes: Mapping[str, List[HealthProbe]],
                 timeouts: Optional[Mapping[str, float]] = None):
        """
        Args:
            probes: Probes per environment name, in execution order
            timeouts: Default per-probe timeout per environment
        """
        self._probes: Dict[str, List[HealthProbe]] = {k: list(v) for k, v in probes.items()}
        self._timeouts = dict(timeouts or {})

    def probes_for(self, environment: str) -> List[HealthProbe]:
        return list(self._probes.get(environment, []))

    def _run_probe(self, probe: HealthProbe, environment: str, timeout: float) -> List[CheckResult]:
        try:
            results = call_with_timeout(probe.check, timeout + TIMEOUT_GRACE, environment, timeout)
        except CallTimeoutError as e:
            results = [CheckResult(probe.name, False, f"probe {e}")]
        except Exception as e:
            logger.exception("Probe %s raised", probe.name)
            results = [CheckResult(probe.name, False, f"probe error: {e}")]

        if not results:
            results = [CheckResult(probe.name, False, "probe reported no checks")]
        return results

    def verify(self, environment: str) -> VerificationResult:
        checks: List[CheckResult] = []
        default_timeout = self._timeouts.get(environment, DEFAULT_VERIFY_TIMEOUT)

        for probe in self.probes_for(environment):
            timeout = probe.timeout or default_timeout
            for result in self._run_probe(probe, environment, timeout):
                checks.append(result)
                if not result.healthy:
                    logger.warning("%s: check %s failed: %s", environment, result.name, result.detail)
                    return VerificationResult(
                        environment=environment,
                        healthy=False,
                        checks=checks,
                        failed_check=result,
                    )
                logger.info("%s: check %s passed", environment, result.name)

        return VerificationResult(environment=environment, healthy=True, checks=checks)
