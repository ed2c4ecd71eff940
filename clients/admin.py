from django.contrib import admin
from .models import Client, ClientAction


class ClientActionInline(admin.TabularInline):
    model = ClientAction
    extra = 0
    can_delete = False
    fields = ['action', 'actor', 'meta', 'created_at']
    readonly_fields = ['action', 'actor', 'meta', 'created_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'business', 'sentiment', 'created_at']
    list_filter = ['sentiment', 'created_at']
    search_fields = ['name', 'email', 'business__name']
    list_select_related = ['business']
    readonly_fields = ['uuid', 'created_at', 'updated_at']
    inlines = [ClientActionInline]


@admin.register(ClientAction)
class ClientActionAdmin(admin.ModelAdmin):
    list_display = ['client', 'business', 'action', 'actor', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['client__name', 'client__email', 'business__name']
    list_select_related = ['client', 'business', 'actor']
    readonly_fields = ['business', 'client', 'actor', 'action', 'meta', 'created_at']

    def has_change_permission(self, request, obj=None):
        # Ledger rows are append-only
        return False
