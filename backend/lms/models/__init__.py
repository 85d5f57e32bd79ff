from lms.models.user import Profile
from lms.models.classroom import Classroom, ClassroomStudent
from lms.models.material import Material, MaterialView, VideoView
from lms.models.quiz import (
    Quiz,
    Question,
    QuizAttempt,
    QuizAnswer,
)
from lms.models.announcement import Announcement, AnnouncementComment
from lms.models.assignment import Assignment
