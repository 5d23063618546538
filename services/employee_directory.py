import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import DefaultCredentialsError
from google.cloud.firestore_v1.base_query import FieldFilter

from core.config import EMPLOYEE_COLLECTION
from core.exceptions import StoreUnavailable
from core.firebase import get_firestore_client
from models.employee import Employee, EmployeeRole, PayRate

logger = logging.getLogger(__name__)


class EmployeeDirectory(ABC):
    """Read-only source of employee profiles."""

    @abstractmethod
    def list_employees(
        self, active_only: bool = True, role: Optional[EmployeeRole] = None
    ) -> List[Employee]:
        raise NotImplementedError


def _parse_pay_rates(data: Dict[str, Any]) -> List[PayRate]:
    rates = []
    for entry in data.get("payRates") or []:
        try:
            rates.append(
                PayRate(
                    rate=float(entry["rate"]),
                    effective_date=date.fromisoformat(str(entry["effectiveDate"])[:10]),
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.warning(f"[DIRECTORY] Skipping malformed pay rate entry: {entry}")

    # Older profiles only carry a flat wage
    if not rates and data.get("hourlyWage") is not None:
        rates.append(PayRate(rate=float(data["hourlyWage"]), effective_date=date.min))
    return rates


def employee_from_profile(employee_id: str, data: Dict[str, Any]) -> Employee:
    """Map a Firestore user profile onto an Employee."""
    role = EmployeeRole.OWNER if data.get("role") == EmployeeRole.OWNER.value else EmployeeRole.STAFF
    return Employee(
        id=employee_id,
        name=(data.get("displayName") or "").strip() or "Unknown",
        role=role,
        active=bool(data.get("active", True)),
        pay_rates=_parse_pay_rates(data),
    )


def filter_employees(
    employees: Iterable[Employee], active_only: bool = True, role: Optional[EmployeeRole] = None
) -> List[Employee]:
    result = [
        e for e in employees
        if (not active_only or e.active) and (role is None or e.role == role)
    ]
    result.sort(key=lambda e: e.name.lower())
    return result


class FirestoreEmployeeDirectory(EmployeeDirectory):
    def __init__(self, client=None, collection: str = EMPLOYEE_COLLECTION):
        self._client = client
        self.collection = collection

    def list_employees(
        self, active_only: bool = True, role: Optional[EmployeeRole] = None
    ) -> List[Employee]:
        try:
            client = self._client or get_firestore_client()
            query = client.collection(self.collection)
            if role is EmployeeRole.OWNER:
                query = query.where(filter=FieldFilter("role", "==", EmployeeRole.OWNER.value))
            employees = [employee_from_profile(doc.id, doc.to_dict() or {}) for doc in query.stream()]
        except (GoogleAPIError, DefaultCredentialsError) as e:
            logger.error(f"[DIRECTORY] Failed to load employees from '{self.collection}': {e}")
            raise StoreUnavailable("load_employees") from e

        return filter_employees(employees, active_only=active_only, role=role)
