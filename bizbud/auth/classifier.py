"""Admin-vs-public classification for shared read endpoints"""

from typing import Optional
from urllib.parse import urlparse

from ..models.auth import OperationClass, RequestOrigin

ADMIN_ACTION = "admin"


class RequestClassifier:
    """
    Decide whether a content read comes from the admin dashboard.

    Only reads are classified. Mutations always require ADMIN_WRITE.
    """

    def __init__(self, admin_path_prefix: str = "/admin"):
        self.admin_path_prefix = admin_path_prefix

    def classify(self, referer: Optional[str], action: Optional[str] = None) -> RequestOrigin:
        if action and action.strip().lower() == ADMIN_ACTION:
            return RequestOrigin.ADMIN
        if not referer:
            return RequestOrigin.PUBLIC
        path = urlparse(referer).path or ""
        if self.admin_path_prefix in path:
            return RequestOrigin.ADMIN
        return RequestOrigin.PUBLIC

    def read_operation(self, referer: Optional[str], action: Optional[str] = None) -> OperationClass:
        """Operation class the guard should enforce for a content read"""
        if self.classify(referer, action) is RequestOrigin.ADMIN:
            return OperationClass.ADMIN_READ
        return OperationClass.PUBLIC_READ
