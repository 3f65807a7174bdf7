from django.db.models import TextChoices


class DeletionStatus(TextChoices):
    ACTIVE = "active", "Active"
    TRASHED = "trashed", "Trashed"
    ALL = "all", "All"
