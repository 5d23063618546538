from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class EmployeeRole(str, Enum):
    STAFF = "staff"
    OWNER = "owner"


class PayRate(BaseModel):
    rate: float
    effective_date: date


# Read-only view of a directory profile
class Employee(BaseModel):
    id: str
    name: str
    role: EmployeeRole = EmployeeRole.STAFF
    active: bool = True
    pay_rates: List[PayRate] = []

    def hourly_rate(self, as_of: Optional[date] = None) -> Optional[float]:
        """Latest pay rate effective on or before as_of (today when omitted)."""
        as_of = as_of or date.today()
        effective = [r for r in self.pay_rates if r.effective_date <= as_of]
        if not effective:
            return None
        return max(effective, key=lambda r: r.effective_date).rate
