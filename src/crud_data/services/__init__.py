from .base_service import CrudService, ServiceHooks

__all__ = ["CrudService", "ServiceHooks"]
