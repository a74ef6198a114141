# promote_tool/probes/http.py
"""HTTP health probe"""

import logging
from typing import Any, Dict, List

import requests

from .base import HealthProbe
from ..models import CheckResult
from ..utils.time_utils import format_duration

logger = logging.getLogger(__name__)


class HttpProbe(HealthProbe):
    """GET a URL and accept a configured set of status codes

    A Front Door endpoint without content answers 404 while still being
    reachable, hence ``expected_status`` may list several codes.
    """

    def __init__(self, name: str, config: Dict[str, Any] = None):
        super().__init__(name, config)
        self.url: str = self.config["url"]
        self.expected_status = [int(c) for c in self.config.get("expected_status", [200])]
        self.headers: Dict[str, str] = dict(self.config.get("options", {}).get("headers", {}))
        self.allow_redirects: bool = self.config.get("options", {}).get("allow_redirects", True)

    def check(self, environment: str, timeout: float) -> List[CheckResult]:
        url = self.url.replace("{environment}", environment)
        logger.debug("Probing %s", url)
        try:
            resp = requests.get(
                url,
                headers=self.headers,
                timeout=timeout,
                allow_redirects=self.allow_redirects,
            )
        except requests.Timeout:
            return [CheckResult(self.name, False, f"GET {url} timed out after {format_duration(timeout)}")]
        except requests.RequestException as exc:
            return [CheckResult(self.name, False, f"GET {url} failed: {exc}")]

        if resp.status_code in self.expected_status:
            return [CheckResult(self.name, True, f"HTTP {resp.status_code}")]

        expected = "|".join(str(c) for c in self.expected_status)
        return [CheckResult(self.name, False, f"HTTP {resp.status_code} (expected {expected})")]
