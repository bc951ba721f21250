"""Tests for install confirmation data."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from skillport.audit import RiskLevel, SkillAuditData
from skillport.confirm import prepare_confirmation
from skillport.errors import InvalidAgent
from skillport.install import Installer, InstallRequest
from skillport.types import Scope


class TestPrepareConfirmation:
    """Tests for prepare_confirmation function."""

    def test_joins_overwrites_and_audit(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test both lookups are combined."""
        # Arrange
        installer.install(
            InstallRequest(
                source=str(source_repo),
                skills=["alpha"],
                agents=["cursor"],
                scope=Scope.PROJECT,
                project_path=project_dir,
            )
        )
        audit = MagicMock()
        audit.check_skill_audit.return_value = {"alpha": SkillAuditData(risk=RiskLevel.SAFE)}

        # Act
        confirmation = prepare_confirmation(
            installer, audit, "owner/repo", ["alpha", "beta"], ["cursor"], Scope.PROJECT, project_dir
        )

        # Assert
        assert confirmation.overwrites == {"alpha": ["cursor"]}
        assert confirmation.audit["alpha"].risk == RiskLevel.SAFE
        audit.check_skill_audit.assert_called_once_with("owner/repo", ["alpha", "beta"])

    def test_without_audit(self, installer: Installer, project_dir: Path) -> None:
        """Test the audit is skipped when no service is configured."""
        confirmation = prepare_confirmation(
            installer, None, "owner/repo", ["alpha"], ["cursor"], Scope.PROJECT, project_dir
        )

        assert confirmation.overwrites == {}
        assert confirmation.audit is None

    def test_audit_error_is_absorbed(self, installer: Installer, project_dir: Path) -> None:
        """Test a raising audit service does not block the confirmation."""
        audit = MagicMock()
        audit.check_skill_audit.side_effect = RuntimeError("service bug")

        confirmation = prepare_confirmation(
            installer, audit, "owner/repo", ["alpha"], ["cursor"], Scope.PROJECT, project_dir
        )

        assert confirmation.audit is None

    def test_invalid_agent(self, installer: Installer, project_dir: Path) -> None:
        """Test the overwrite check still rejects unknown agents."""
        with pytest.raises(InvalidAgent):
            prepare_confirmation(installer, None, "owner/repo", ["alpha"], ["nope"], Scope.PROJECT, project_dir)
