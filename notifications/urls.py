# notifications/urls.py

from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('<int:pk>/acknowledge/', views.acknowledge_notification_view, name='acknowledge'),
]
