"""
URL configuration for upvoice project.
"""
from django.contrib import admin
from django.urls import path, include
from . import views

urlpatterns = [
    path('health/', views.health_check, name='health_check'),
    path('admin/', admin.site.urls),

    # Public review-link endpoints (no session)
    path('', include('reviews.urls')),

    # Business owner API
    path('api/v1/', include(('api.urls', 'api'), namespace='api')),
]
