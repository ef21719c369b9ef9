"""Shared data types for GCP resources."""

from dataclasses import dataclass

NO_IP = "No IP"


@dataclass
class Project:
    """A GCP project the active account can see."""

    project_id: str
    name: str = "Unknown"


@dataclass
class VMInstance:
    """A compute instance and the details needed to reach it."""

    name: str
    zone: str
    machine_type: str = ""
    external_ip: str = ""
    status: str = ""

    @property
    def has_external_ip(self) -> bool:
        return bool(self.external_ip) and self.external_ip != NO_IP

    @property
    def url(self) -> str:
        """Base HTTP URL served by nginx on the VM."""
        return f"http://{self.external_ip}"
