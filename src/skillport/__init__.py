"""Install agent skills from git repositories into AI coding agents."""

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from skillport.protocols import (
    AuditService,
    FileSystem,
    SkillInstaller,
    SkillLockRepository,
    SkillRemover,
    SkillSourceFetcher,
    UpdateService,
)

__all__ = [
    "__version__",
    "AuditService",
    "FileSystem",
    "SkillInstaller",
    "SkillLockRepository",
    "SkillRemover",
    "SkillSourceFetcher",
    "UpdateService",
]
