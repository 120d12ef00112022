# DENTALLABPORTAL/lab_cases/forms.py

from django import forms

from billing.calculator import MATERIAL_CHOICES, split_materials
from .models import DentalCase


def is_valid_fdi_tooth(token):
    """FDI two-digit notation: permanent quadrants 1-4 (teeth 1-8), primary 5-8 (teeth 1-5)."""
    if len(token) != 2 or not token.isdigit():
        return False
    quadrant, tooth = int(token[0]), int(token[1])
    if 1 <= quadrant <= 4:
        return 1 <= tooth <= 8
    if 5 <= quadrant <= 8:
        return 1 <= tooth <= 5
    return False


class DentalCaseForm(forms.ModelForm):
    material = forms.MultipleChoiceField(
        choices=MATERIAL_CHOICES,
        widget=forms.CheckboxSelectMultiple,
        error_messages={'required': 'A material must be selected.'}
    )

    class Meta:
        model = DentalCase
        fields = [
            'patient_name', 'patient_number', 'dentist_name', 'tooth_numbers', 'prosthesis_type',
            'material', 'shade', 'delivery_date', 'notes'
        ]
        labels = {
            'tooth_numbers': 'Tooth Numbers',
            'prosthesis_type': 'Prosthesis Type',
        }
        widgets = {
            'patient_name': forms.TextInput(attrs={'class': 'form-control'}),
            'patient_number': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Optional'}),
            'dentist_name': forms.TextInput(attrs={'class': 'form-control'}),
            'tooth_numbers': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g., 11,12,13'}),
            'prosthesis_type': forms.RadioSelect,
            'shade': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g., A2'}),
            'delivery_date': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}),
            'notes': forms.Textarea(attrs={'rows': 3, 'class': 'form-control'}),
        }
        error_messages = {
            'patient_name': {'required': 'Patient name must be at least 2 characters.'},
            'dentist_name': {'required': 'Dentist name must be at least 2 characters.'},
            'tooth_numbers': {'required': 'At least one tooth number is required.'},
            'prosthesis_type': {'required': 'A prosthesis type must be selected.'},
            'shade': {'required': 'Shade is required.'},
        }

    def __init__(self, *args, **kwargs):
        # A dentist submitting from the portal can only file cases under their own name.
        self.locked_dentist_name = kwargs.pop('dentist_name', None)
        super().__init__(*args, **kwargs)
        if self.instance and self.instance.pk:
            self.initial['material'] = split_materials(self.instance.material)
            # The dentist of an existing case never changes.
            self.fields['dentist_name'].disabled = True
        if self.locked_dentist_name:
            self.initial['dentist_name'] = self.locked_dentist_name
            self.fields['dentist_name'].disabled = True

    def clean_patient_name(self):
        name = self.cleaned_data.get('patient_name', '').strip()
        if len(name) < 2:
            raise forms.ValidationError('Patient name must be at least 2 characters.')
        return name

    def clean_dentist_name(self):
        if self.locked_dentist_name:
            return self.locked_dentist_name
        name = (self.cleaned_data.get('dentist_name') or '').strip()
        if len(name) < 2:
            raise forms.ValidationError('Dentist name must be at least 2 characters.')
        return name

    def clean_tooth_numbers(self):
        raw = self.cleaned_data.get('tooth_numbers', '')
        tokens = [token.strip() for token in raw.split(',') if token.strip()]
        if not tokens:
            raise forms.ValidationError('At least one tooth number is required.')
        invalid = [token for token in tokens if not is_valid_fdi_tooth(token)]
        if invalid:
            raise forms.ValidationError(f"Invalid tooth number(s): {', '.join(invalid)}. Use FDI notation, e.g. 11 or 36.")
        duplicates = sorted({token for token in tokens if tokens.count(token) > 1})
        if duplicates:
            raise forms.ValidationError(f"Tooth number(s) listed more than once: {', '.join(duplicates)}.")
        return ','.join(tokens)

    def clean_material(self):
        return ', '.join(self.cleaned_data.get('material', []))


class CaseSearchForm(forms.Form):
    q = forms.CharField(
        required=False,
        label="Search",
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Search by dentist or patient...'})
    )


class DoctorCaseFilterForm(forms.Form):
    q = forms.CharField(
        required=False,
        label="Patient",
        widget=forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Search by patient...'})
    )
    month = forms.ChoiceField(required=False, widget=forms.Select(attrs={'class': 'form-control'}))

    def __init__(self, *args, **kwargs):
        months = kwargs.pop('months', [])
        super().__init__(*args, **kwargs)
        self.fields['month'].choices = [('', 'All Months')] + [
            (month.strftime('%Y-%m'), month.strftime('%B %Y')) for month in months
        ]


class BulkDeleteForm(forms.Form):
    case_ids = forms.ModelMultipleChoiceField(
        queryset=DentalCase.objects.all(),
        error_messages={'required': 'Select at least one case to delete.'}
    )
