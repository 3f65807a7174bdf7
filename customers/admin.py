from django.contrib import admin

from common.admin import DeletedListFilter, SoftDeletableModelAdmin
from customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(SoftDeletableModelAdmin):
    list_display = ("id", "name", "email", "phone", "deleted_at", "created")
    list_filter = (DeletedListFilter,)
    search_fields = ("name", "email", "phone")
    readonly_fields = ("created", "modified")
