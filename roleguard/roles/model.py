from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, field_validator

from roleguard.access.roles import Role


@dataclass(frozen=True)
class RoleData:
    current_role: Role
    available_roles: Tuple[Role, ...]
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentRole": self.current_role.value,
            "availableRoles": [r.value for r in self.available_roles],
            "timestamp": self.timestamp,
        }


class RoleDataPayload(BaseModel):
    """Shape check for cached or caller-supplied role data (identifiers not yet normalized)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_role: StrictStr = Field(alias="currentRole")
    available_roles: List[StrictStr] = Field(alias="availableRoles")
    timestamp: Union[StrictInt, StrictFloat]

    @field_validator("timestamp")
    @classmethod
    def _finite(cls, v):
        if not math.isfinite(v):
            raise ValueError("timestamp must be finite")
        return v


class RemoteRoleData(BaseModel):
    """``GET role-data`` response from the remote authority."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_role: Optional[StrictStr] = Field(default=None, alias="currentRole")
    available_roles: Optional[List[StrictStr]] = Field(default=None, alias="availableRoles")


@dataclass
class RoleTransitionState:
    transitioning: bool
    fromRole: Optional[str]
    toRole: Optional[str]
    startTime: str
    targetPath: Optional[str] = None
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["RoleData", "RoleDataPayload", "RemoteRoleData", "RoleTransitionState"]
