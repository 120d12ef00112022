# audit_log/urls.py

from django.urls import path
from . import views

app_name = 'audit_log'

urlpatterns = [
    path('logins/', views.login_log_view, name='login_log'),
]
