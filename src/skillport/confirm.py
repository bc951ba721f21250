"""Data shown before an install is confirmed."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from skillport.audit import SkillAuditData
from skillport.protocols import AuditService, SkillInstaller
from skillport.types import Scope

logger = logging.getLogger(__name__)


@dataclass
class Confirmation:
    """Overwrite and audit information for a pending install.

    Attributes:
        overwrites: Skill name to agents that already have it.
        audit: Audit data per skill, or None if unavailable.
    """

    overwrites: dict[str, list[str]] = field(default_factory=dict)
    audit: dict[str, SkillAuditData] | None = None


def prepare_confirmation(
    installer: SkillInstaller,
    audit: AuditService | None,
    source: str,
    skills: list[str],
    agents: list[str],
    scope: Scope,
    project_path: Path | None = None,
) -> Confirmation:
    """Run the overwrite check and the audit lookup concurrently.

    Args:
        installer: Installer providing the overwrite check.
        audit: Audit service, or None to skip the lookup.
        source: Source identifier passed to the audit service.
        skills: Skill names to install.
        agents: Agent identifiers to install for.
        scope: Installation scope.
        project_path: Project root for project scope.

    Returns:
        The joined confirmation data.

    Raises:
        InvalidAgent: If an agent is not supported.
    """
    with ThreadPoolExecutor(max_workers=2) as executor:
        overwrites_future = executor.submit(
            installer.check_overwrites, skills, agents, scope, project_path
        )
        audit_future = (
            executor.submit(audit.check_skill_audit, source, skills) if audit is not None else None
        )

        audit_data = None
        if audit_future is not None:
            try:
                audit_data = audit_future.result()
            except Exception:
                logger.exception("Audit lookup raised for %s", source)

        return Confirmation(overwrites=overwrites_future.result(), audit=audit_data)
