"""Advisory risk lookups for skills."""

from __future__ import annotations

import json
import logging
import ssl
import urllib.parse
import urllib.request
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

AUDIT_URL = "https://add-skill.vercel.sh/audit"
DEFAULT_AUDIT_TIMEOUT_SECS = 3


class RiskLevel(str, Enum):
    """Risk rating reported by the audit service."""

    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


class SkillAuditData(BaseModel):
    """Audit result for one skill."""

    model_config = ConfigDict(populate_by_name=True)

    risk: RiskLevel
    alerts: int | None = None
    score: float | None = None
    analyzed_at: str | None = Field(default=None, alias="analyzedAt")


class AuditClient:
    """Client for the skill audit service.

    Lookups are best effort: any failure yields None and nothing is raised.
    """

    def __init__(self, url: str = AUDIT_URL, timeout_secs: float = DEFAULT_AUDIT_TIMEOUT_SECS) -> None:
        """Initialize the audit client.

        Args:
            url: Audit endpoint.
            timeout_secs: Request timeout in seconds.

        Note:
            Prefer using factory methods `create()` or `create_default()` for construction.
        """
        self.url = url
        self.timeout_secs = timeout_secs

    @classmethod
    def create(cls, timeout_secs: float) -> AuditClient:
        """Create an audit client with a custom timeout.

        Args:
            timeout_secs: Request timeout in seconds.

        Returns:
            Configured AuditClient instance.
        """
        return cls(timeout_secs=timeout_secs)

    @classmethod
    def create_default(cls) -> AuditClient:
        """Create an audit client with the default endpoint and timeout.

        Returns:
            AuditClient configured with defaults.
        """
        return cls()

    def check_skill_audit(
        self, source: str, skill_names: list[str]
    ) -> dict[str, SkillAuditData] | None:
        """Look up the audit data for skills from a source.

        Args:
            source: Source identifier, e.g. ``owner/repo``.
            skill_names: Skills to look up.

        Returns:
            Dict of skill name to audit data, omitting entries that fail
            validation, or None if the lookup failed.
        """
        if not skill_names:
            return {}

        query = urllib.parse.urlencode({"source": source, "skills": ",".join(skill_names)})
        request = urllib.request.Request(
            f"{self.url}?{query}",
            headers={"Accept": "application/json"},
        )

        try:
            with urllib.request.urlopen(
                request, timeout=self.timeout_secs, context=ssl.create_default_context()
            ) as response:
                data = json.loads(response.read().decode("utf-8"))
        except Exception as e:
            logger.debug("Audit lookup failed for %s: %s", source, e)
            return None

        if not isinstance(data, dict):
            logger.debug("Unexpected audit payload for %s", source)
            return None

        results: dict[str, SkillAuditData] = {}
        for name, payload in data.items():
            try:
                results[name] = SkillAuditData.model_validate(payload)
            except ValidationError as e:
                logger.debug("Skipping audit entry %s: %s", name, e)
        return results
