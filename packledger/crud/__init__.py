from .member import get_member
from .pack_template import get_pack_templates, get_pack_template
from .pack_assignment import (
    # Пакеты участников
    get_pack_assignment,
    get_pack_assignments,
    create_pack_assignment,
    update_pack_assignment_status,
    decrement_remaining_sessions,
    sync_statuses,
)
from .check_in import (
    # Журнал списаний
    get_check_in_by_key,
    create_check_in,
    count_check_ins,
    get_check_ins,
)
