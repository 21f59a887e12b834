from schoolhub.db.models import Notification

class NotificationResponse(Notification):
    id: str
