from .pagination import PaginatedResponse
from .member import MemberBasic
from .pack_template import PackTemplateResponse, PackTemplateList
from .pack_assignment import PackAssignmentCreate, PackAssignmentStatusUpdate, PackAssignmentResponse, PackAssignmentList
from .check_in import CheckInCreate, CheckInResponse, CheckInResultResponse
