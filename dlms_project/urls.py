# DENTALLABPORTAL/dlms_project/urls.py

from django.contrib import admin
from django.urls import path, include
from django.contrib.auth import views as auth_views

urlpatterns = [
    path('admin/', admin.site.urls),

    # Landing page and owner dashboard
    path('', include('dashboard.urls')),

    # django-select2 URL
    path("select2/", include("django_select2.urls")),

    # App-specific URLs
    path('cases/', include('lab_cases.urls')),
    path('billing/', include('billing.urls')),
    path('dentists/', include('dentists.urls')),
    path('notifications/', include('notifications.urls')),
    path('audit/', include('audit_log.urls')),

    # Owner authentication
    path('accounts/login/', auth_views.LoginView.as_view(), name='login'),
    path('accounts/logout/', auth_views.LogoutView.as_view(next_page='login'), name='logout'),
]

# Custom error handler for 403 Forbidden errors
handler403 = 'dashboard.views.custom_permission_denied_view'
