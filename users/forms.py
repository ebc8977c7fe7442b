from django import forms
from django.contrib.auth import get_user_model
from django.contrib.auth.forms import UserCreationForm
from phonenumber_field.formfields import PhoneNumberField

from users.models import UserType

User = get_user_model()


class LedgerUserCreationForm(UserCreationForm):
    phone_number = PhoneNumberField(required=True)
    user_type = forms.ChoiceField(choices=UserType.choices, initial=UserType.ARTIST)

    class Meta:
        model = User
        fields = ('phone_number', 'username', 'user_type')

    def clean_phone_number(self):
        phone = self.cleaned_data['phone_number']
        if User.objects.filter(phone_number=phone).exists():
            raise forms.ValidationError("A user with that phone number already exists.")
        return phone
