# DENTALLABPORTAL/dentists/urls.py

from django.urls import path
from . import views

app_name = 'dentists'

urlpatterns = [
    # --- Doctor portal sign-in ---
    path('login/', views.dentist_login_view, name='login'),
    path('logout/', views.dentist_logout_view, name='logout'),

    # --- Owner management of dentist accounts ---
    path('', views.dentist_list_view, name='dentist_list'),
    path('add/', views.add_dentist_view, name='add_dentist'),
    path('<int:pk>/edit/', views.edit_dentist_view, name='edit_dentist'),
    path('<int:pk>/delete/', views.delete_dentist_view, name='delete_dentist'),
]
