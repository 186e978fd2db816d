from .role import Role
from .user import User, UserManager, get_creator_name

__all__ = ["Role", "User", "UserManager", "get_creator_name"]
