from django.contrib import admin
from .models import Business


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'owner', 'email', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'slug', 'email', 'owner__username']
    list_select_related = ['owner']
    readonly_fields = ['uuid', 'created_at', 'updated_at']
    fieldsets = [
        ('Basic Information', {
            'fields': ['uuid', 'name', 'slug', 'owner', 'email', 'is_active']
        }),
        ('Public Review Page', {
            'fields': ['description', 'google_review_link']
        }),
        ('Review Request Email', {
            'fields': ['email_subject', 'email_body'],
            'classes': ['collapse']
        }),
    ]
