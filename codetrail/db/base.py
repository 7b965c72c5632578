# Import every model so Base.metadata knows all tables before create_all
from codetrail.db.base_class import Base  # noqa: F401
from codetrail.models.user import User  # noqa: F401
from codetrail.models.platform import PlatformProfile  # noqa: F401
from codetrail.models.problem import Problem, Submission  # noqa: F401
from codetrail.models.contest import Contest, ContestParticipation  # noqa: F401
from codetrail.models.calendar import CalendarCache  # noqa: F401
