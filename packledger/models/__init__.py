from .member import Member
from .pack_template import PackTemplate
from .pack_assignment import (
    PackStatus,
    PaymentStatus,
    PaymentMethod,
    PackAssignment,
    evaluate_status,
)
from .check_in import PackCheckIn
