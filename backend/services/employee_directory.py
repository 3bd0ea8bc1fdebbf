"""
Employee directory: resolves an operator-entered code to a verified display name.

Two backends:
  - SqlEmployeeDirectory:  the local `employees` table (default)
  - HttpEmployeeDirectory: a remote roster service exposing
                           GET /api/employees?code=<code> → {"employee_name": ...}

Both raise UnknownEmployeeCode for codes that do not resolve and
StorageUnavailable when the backend cannot be reached.
"""
import logging
from typing import Optional

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Employee
from exceptions import StorageUnavailable, UnknownEmployeeCode

logger = logging.getLogger(__name__)


def _normalize(code: str) -> str:
    code = (code or "").strip()
    if not code:
        raise UnknownEmployeeCode("empty employee code")
    return code


class SqlEmployeeDirectory:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, code: str) -> str:
        code = _normalize(code)
        try:
            res = await self.db.execute(
                select(Employee).where(Employee.code == code, Employee.active == True)
            )
            employee = res.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"employee lookup failed: {e}") from e

        if employee is None:
            raise UnknownEmployeeCode(code)
        return employee.employee_name


class HttpEmployeeDirectory:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def resolve(self, code: str) -> str:
        code = _normalize(code)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/api/employees",
                    params={"code": code},
                )
        except httpx.HTTPError as e:
            logger.error(f"Employee directory unreachable: {e}")
            raise StorageUnavailable(f"employee directory unreachable: {e}") from e

        if response.status_code == 404:
            raise UnknownEmployeeCode(code)
        if response.status_code >= 500:
            raise StorageUnavailable(f"employee directory returned {response.status_code}")
        if response.status_code != 200:
            raise UnknownEmployeeCode(code)

        try:
            data = response.json()
        except ValueError:
            data = None
        name = data.get("employee_name") if isinstance(data, dict) else None
        if not name:
            raise UnknownEmployeeCode(code)
        return name


def build_directory(db: AsyncSession):
    """Directory backend selected by EMPLOYEE_DIRECTORY_URL."""
    if settings.employee_directory_url:
        return HttpEmployeeDirectory(
            settings.employee_directory_url,
            timeout=settings.employee_directory_timeout_seconds,
        )
    return SqlEmployeeDirectory(db)
