from django.urls import path
from . import views

app_name = 'reviews'

urlpatterns = [
    # Public review-link endpoints, authorised by the signed token in the body
    path('r/business/', views.business_details, name='business_details'),
    path('r/clicked/', views.review_clicked, name='review_clicked'),
    path('r/submit/', views.submit_review_view, name='submit_review'),
]
