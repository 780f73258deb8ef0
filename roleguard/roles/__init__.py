from .authority import HTTPRoleAuthority, InMemoryRoleAuthority, RoleAuthority
from .cache import InMemoryKVStore, KeyValueStore, RedisKVStore, load_store_from_env
from .events import ROLE_SWITCHED, ROLES_UPDATED, EventBus
from .model import RoleData, RoleTransitionState
from .store import RoleStateStore
from .transition import Navigator, RecordingNavigator, RoleTransitionCoordinator, TransitionPhase

__all__ = [
    "RoleAuthority",
    "HTTPRoleAuthority",
    "InMemoryRoleAuthority",
    "KeyValueStore",
    "InMemoryKVStore",
    "RedisKVStore",
    "load_store_from_env",
    "EventBus",
    "ROLE_SWITCHED",
    "ROLES_UPDATED",
    "RoleData",
    "RoleTransitionState",
    "RoleStateStore",
    "Navigator",
    "RecordingNavigator",
    "RoleTransitionCoordinator",
    "TransitionPhase",
]
