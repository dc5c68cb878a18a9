from models.user import User
from models.medication import Medication
from models.medication_log import MedicationLog, LogStatus
from models.family_contact import FamilyContact
from models.notification import Notification, NotificationType
from models.email_settings import EmailSettings

__all__ = [
    "User",
    "Medication",
    "MedicationLog",
    "LogStatus",
    "FamilyContact",
    "Notification",
    "NotificationType",
    "EmailSettings",
]
