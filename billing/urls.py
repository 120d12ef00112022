# billing/urls.py

from django.urls import path
from . import views

app_name = 'billing'

urlpatterns = [
    # --- Owner invoices ---
    path('invoices/', views.invoice_list_view, name='invoice_list'),
    path('invoices/generate/', views.generate_invoice_view, name='generate_invoice'),
    path('invoices/<int:pk>/', views.invoice_detail_view, name='invoice_detail'),
    path('invoices/<int:pk>/print/', views.print_invoice_view, name='print_invoice'),
    path('invoices/<int:pk>/pdf/', views.invoice_pdf_view, name='invoice_pdf'),
    path('invoices/<int:pk>/delete/', views.delete_invoice_view, name='delete_invoice'),

    # --- Doctor portal ---
    path('portal/preview/', views.doctor_invoice_preview_view, name='doctor_invoice_preview'),
    path('portal/invoices/', views.doctor_invoice_list_view, name='doctor_invoice_list'),
    path('portal/invoices/<int:pk>/', views.doctor_invoice_print_view, name='doctor_invoice_print'),
]
