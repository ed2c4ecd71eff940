from django.contrib import admin
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['client', 'business', 'happy', 'stars', 'created_at']
    list_filter = ['happy', 'created_at']
    search_fields = ['client__name', 'client__email', 'business__name', 'review']
    list_select_related = ['client', 'business']
    readonly_fields = ['uuid', 'business', 'client', 'review', 'stars', 'happy', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False
