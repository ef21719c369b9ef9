"""Deploy parameters dataclass."""

from dataclasses import dataclass, field

from owoxgcp.auth import BasicAuthUser
from owoxgcp.config import Settings


@dataclass
class DeployParams:
    """All parameters needed for a single deployment."""

    settings: Settings = field(default_factory=Settings)
    auth_method: str = "basic"
    users: list[BasicAuthUser] = field(default_factory=list)
    recreate: bool = False  # delete and recreate an existing VM
    dry_run: bool = False
