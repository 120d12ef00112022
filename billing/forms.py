# billing/forms.py

from django import forms
from django.core.exceptions import ValidationError
from django.utils.text import slugify
from django_select2 import forms as s2forms

from dentists.models import Dentist
from lab_cases.models import DentalCase
from .calculator import DEFAULT_MATERIAL_PRICES


def price_field_name(material):
    return f"price_{slugify(material).replace('-', '_')}"


def get_dentist_choices():
    """Every dentist with an account or with at least one case on file."""
    names = set(Dentist.objects.values_list('name', flat=True))
    names.update(DentalCase.objects.values_list('dentist_name', flat=True).distinct())
    return [('', 'Select a dentist')] + [(name, name) for name in sorted(names, key=str.lower)]


class DateRangeForm(forms.Form):
    from_date = forms.DateField(
        required=False,
        label="From",
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'})
    )
    to_date = forms.DateField(
        required=False,
        label="To",
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'})
    )

    def clean(self):
        cleaned_data = super().clean()
        from_date = cleaned_data.get('from_date')
        to_date = cleaned_data.get('to_date')
        if from_date and to_date and from_date > to_date:
            raise ValidationError("The 'From' date cannot be after the 'To' date.")
        return cleaned_data


class InvoiceGenerateForm(DateRangeForm):
    """
    Owner invoice generator. Prices and the paid amount are free text: a
    value that is not a number leaves the default price (or zero paid) in
    place instead of blocking the preview.
    """
    dentist_name = forms.ChoiceField(label="Dentist", widget=s2forms.Select2Widget)
    paid_amount = forms.CharField(
        required=False,
        label="Paid Amount",
        widget=forms.TextInput(attrs={'class': 'form-control', 'inputmode': 'decimal', 'placeholder': '0'})
    )

    field_order = ['dentist_name', 'from_date', 'to_date']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['dentist_name'].choices = get_dentist_choices()
        for material, price in DEFAULT_MATERIAL_PRICES.items():
            self.fields[price_field_name(material)] = forms.CharField(
                required=False,
                label=f"{material} price",
                initial=str(price),
                widget=forms.TextInput(attrs={'class': 'form-control', 'inputmode': 'decimal'})
            )

    def price_inputs(self):
        """Raw price text per material, as typed."""
        return {
            material: self.cleaned_data.get(price_field_name(material))
            for material in DEFAULT_MATERIAL_PRICES
        }

    def price_fields(self):
        return [self[price_field_name(material)] for material in DEFAULT_MATERIAL_PRICES]
