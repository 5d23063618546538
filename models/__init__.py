from .availability import Availability, AvailabilityResponse
from .employee import Employee, EmployeeRole, PayRate
from .shift import DraftShift, PublishedShift, Shift, ShiftResponse, ShiftStatus
from .time_off import BLOCKING_STATUSES, TimeOffNotice, TimeOffResponse, TimeOffStatus
