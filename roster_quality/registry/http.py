"""
HTTP registry - reads the student registry through its REST API.
"""

import logging
import os
from urllib.parse import quote

import requests

from ..core.records import StoredStudent
from .base import BaseRegistry

logger = logging.getLogger(__name__)


class HttpRegistry(BaseRegistry):
    """
    Registry client for the school's student API.

    Endpoints:
        GET {base}/students/{id}             -> 200 student | 404
        GET {base}/students?email=...        -> {"students": [...]}
        GET {base}/students?first_name=...   -> {"students": [...]}

    Errors propagate; the duplicate detector decides how to treat them.
    """

    NAME = "http"

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or os.environ.get("REGISTRY_URL", "")).rstrip("/")
        if not self.base_url:
            raise ValueError("HttpRegistry needs a base_url or REGISTRY_URL")
        self.timeout = timeout or float(os.environ.get("REGISTRY_TIMEOUT", 10))

        self.session = requests.Session()
        self.session.headers["Accept"] = "application/json"
        token = token or os.environ.get("REGISTRY_TOKEN")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def exists_by_id(self, student_id: str) -> bool:
        return self._get_student(student_id) is not None

    def get_by_id(self, student_id: str) -> StoredStudent | None:
        data = self._get_student(student_id)
        if data is None:
            return None
        data.setdefault("student_id", student_id)
        return StoredStudent.from_dict(data)

    def find_by_email(self, email: str) -> list[StoredStudent]:
        if not email:
            return []
        return self._query({"email": email})

    def find_by_first_name(self, first_name: str) -> list[StoredStudent]:
        return self._query({"first_name": first_name})

    def _get_student(self, student_id: str) -> dict | None:
        response = self.session.get(
            f"{self.base_url}/students/{quote(student_id, safe='')}",
            timeout=self.timeout,
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    def _query(self, params: dict) -> list[StoredStudent]:
        response = self.session.get(
            f"{self.base_url}/students",
            params=params,
            timeout=self.timeout,
        )
        response.raise_for_status()
        students = [StoredStudent.from_dict(s) for s in response.json().get("students", [])]
        logger.debug(f"Registry query {params} returned {len(students)} student(s)")
        return students

    def close(self):
        self.session.close()
