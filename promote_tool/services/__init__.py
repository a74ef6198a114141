"""Business logic services for promote-tool"""

from .base import TransitionService, default_actor
from .promotion_service import PromotionService
from .rollback_service import RollbackService
from .config_service import ConfigService, find_project_root
from .workspace import Workspace

__all__ = [
    "TransitionService",
    "default_actor",
    "PromotionService",
    "RollbackService",
    "ConfigService",
    "find_project_root",
    "Workspace",
]
