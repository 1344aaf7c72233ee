from .celery_app import celery_app
from .box_tasks import expire_overdue_boxes

__all__ = [
    "celery_app",
    "expire_overdue_boxes",
]
