from django.db import models
from django.db.models import Q
from django.db.models.functions import Lower
from django.utils.translation import gettext_lazy as _

from common.models import SoftDeletableBaseModel


CUSTOMERS_EMAIL_UNIQUE_CONSTRAINT = "customers_email_unique_not_deleted"


class Customer(SoftDeletableBaseModel):
    """
    A person appointments are booked for. Owns appointment series and appointments.
    Soft deleting keeps the row (and everything it owns) so it can be restored later,
    hard deleting cascades to series and appointments.
    """

    name = models.CharField(_("name"), max_length=150)
    email = models.EmailField(_("email"), max_length=254)
    phone = models.CharField(_("phone"), max_length=30, blank=True, default="")

    class Meta:
        verbose_name = _("customer")
        verbose_name_plural = _("customers")
        constraints = [
            models.UniqueConstraint(
                Lower("email"),
                condition=Q(deleted_at__isnull=True),
                name=CUSTOMERS_EMAIL_UNIQUE_CONSTRAINT,
            ),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>"
