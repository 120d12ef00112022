# DENTALLABPORTAL/dentists/forms.py

from django import forms

from .models import Dentist, DUPLICATE_NAME_MESSAGE


class DentistForm(forms.ModelForm):
    field_order = ['name', 'password', 'welcome_message', 'contact_number', 'is_active']

    password = forms.CharField(
        required=False,
        strip=False,
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'autocomplete': 'new-password'}),
        help_text="Leave blank to keep the current password."
    )

    class Meta:
        model = Dentist
        fields = ['name', 'welcome_message', 'contact_number', 'is_active']
        widgets = {
            'name': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g., Dr. Sara Haddad'}),
            'welcome_message': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Shown after login'}),
            'contact_number': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g., +962791234567'}),
            'is_active': forms.CheckboxInput(attrs={'class': 'form-check-input'}),
        }

    def clean_name(self):
        name = self.cleaned_data.get('name', '').strip()
        if len(name) < 2:
            raise forms.ValidationError("Name must be at least 2 characters.")
        if Dentist.objects.name_taken(name, exclude_pk=self.instance.pk):
            raise forms.ValidationError(DUPLICATE_NAME_MESSAGE)
        return name

    def clean_password(self):
        password = self.cleaned_data.get('password')
        if not self.instance.pk and not password:
            raise forms.ValidationError("A password is required for a new dentist.")
        return password

    def save(self, commit=True):
        data = {
            'name': self.cleaned_data['name'],
            'welcome_message': self.cleaned_data.get('welcome_message') or '',
            'contact_number': self.cleaned_data.get('contact_number') or None,
            'is_active': self.cleaned_data.get('is_active', True),
        }
        password = self.cleaned_data.get('password')
        if self.instance.pk:
            if password:
                data['password'] = password
            return Dentist.objects.update_dentist(self.instance.pk, **data)
        return Dentist.objects.add_dentist(password=password, **data)


class DentistLoginForm(forms.Form):
    name = forms.CharField(
        label="Dentist Name",
        widget=forms.TextInput(attrs={'class': 'form-control', 'autofocus': True})
    )
    password = forms.CharField(
        strip=False,
        widget=forms.PasswordInput(attrs={'class': 'form-control', 'autocomplete': 'current-password'})
    )

    def __init__(self, *args, **kwargs):
        self.dentist = None
        super().__init__(*args, **kwargs)

    def clean(self):
        cleaned_data = super().clean()
        name = cleaned_data.get('name')
        password = cleaned_data.get('password')
        if name and password:
            self.dentist = Dentist.objects.verify(name, password)
            if self.dentist is None:
                raise forms.ValidationError("Incorrect name or password. Please try again.")
        return cleaned_data
