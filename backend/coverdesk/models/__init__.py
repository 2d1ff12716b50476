from coverdesk.models.activity_log import ActivityLog  # noqa: F401
from coverdesk.models.availability import AvailabilitySource, TeacherAvailability  # noqa: F401
from coverdesk.models.classroom import Classroom, SubjectProgress  # noqa: F401
from coverdesk.models.conflict import TimetableConflict  # noqa: F401
from coverdesk.models.notification import Notification, NotificationAudience, NotificationType  # noqa: F401
from coverdesk.models.subject import Subject  # noqa: F401
from coverdesk.models.substitution_request import SubstitutionRequest, SubstitutionStatus  # noqa: F401
from coverdesk.models.teacher import Teacher  # noqa: F401
from coverdesk.models.timetable import Timetable, TimetableSlot  # noqa: F401
from coverdesk.models.workload import TeacherWorkload  # noqa: F401
