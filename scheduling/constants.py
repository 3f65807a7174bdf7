from django.db.models import IntegerChoices, TextChoices


# Postgres exclusion constraint that keeps a customer's active appointments from overlapping
APPOINTMENTS_NO_OVERLAP_CONSTRAINT = "appointments_no_overlap"

MIN_GENERATION_WEEKS = 1


class Weekday(IntegerChoices):
    SUNDAY = 0, "Sunday"
    MONDAY = 1, "Monday"
    TUESDAY = 2, "Tuesday"
    WEDNESDAY = 3, "Wednesday"
    THURSDAY = 4, "Thursday"
    FRIDAY = 5, "Friday"
    SATURDAY = 6, "Saturday"


class SeriesStatus(TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    ALL = "all", "All"
