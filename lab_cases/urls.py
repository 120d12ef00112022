# DENTALLABPORTAL/lab_cases/urls.py

from django.urls import path
from . import views

app_name = 'lab_cases'

urlpatterns = [
    # --- Owner case management ---
    path('', views.case_list_view, name='case_list'),
    path('add/', views.add_case_view, name='add_case'),
    path('bulk-delete/', views.bulk_delete_cases_view, name='bulk_delete_cases'),
    path('<int:pk>/', views.case_detail_view, name='case_detail'),
    path('<int:pk>/edit/', views.edit_case_view, name='edit_case'),
    path('<int:pk>/delete/', views.delete_case_view, name='delete_case'),
    path('<int:pk>/approve-deletion/', views.approve_deletion_view, name='approve_deletion'),
    path('<int:pk>/restore/', views.restore_case_view, name='restore_case'),
    path('<int:pk>/unit-price/', views.set_unit_price_view, name='set_unit_price'),

    # --- Doctor portal ---
    path('portal/', views.doctor_portal_view, name='doctor_portal'),
    path('portal/history/', views.doctor_case_history_view, name='doctor_case_history'),
    path('portal/<int:pk>/request-deletion/', views.request_deletion_view, name='request_deletion'),
]
