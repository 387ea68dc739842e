from booking.models.user import User, UserMeta, user_languages, users_blacklist
from booking.models.language import Language
from booking.models.job import Job
from booking.models.assignment import TranslatorAssignment
from booking.models.feedback import Feedback

__all__ = [
    "User", "UserMeta", "user_languages", "users_blacklist", "Language",
    "Job", "TranslatorAssignment", "Feedback",
]
