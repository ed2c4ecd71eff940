from django import forms
from django.conf import settings
from core.managers import parse_uuid
from .services import REVIEW_TYPES, parse_stars


class ReviewLinkForm(forms.Form):
    """The ids and token a review link carries, as posted by the review page."""

    businessId = forms.UUIDField(
        error_messages={
            'required': 'businessId is required and must be a valid uuid.',
            'invalid': 'businessId is required and must be a valid uuid.',
        }
    )
    clientId = forms.CharField(
        error_messages={'required': "clientId must be a valid uuid (or 'test')."}
    )
    token = forms.CharField(required=False)

    def clean_clientId(self):
        client_id = self.cleaned_data['clientId']
        if client_id == settings.REVIEW_LINK_PREVIEW_CLIENT_ID:
            return client_id
        if parse_uuid(client_id) is None:
            raise forms.ValidationError("clientId must be a valid uuid (or 'test').")
        return client_id

    def clean(self):
        cleaned_data = super().clean()
        client_id = cleaned_data.get('clientId')
        # Preview links may omit the token
        if client_id and client_id != settings.REVIEW_LINK_PREVIEW_CLIENT_ID and not cleaned_data.get('token'):
            self.add_error('token', 'token is required.')
        return cleaned_data

    def first_error(self):
        """(field, message) of the first validation error"""
        for field, errors in self.errors.items():
            return field, errors[0]
        return None, None


class SubmitReviewForm(ReviewLinkForm):
    reviewType = forms.ChoiceField(
        choices=[(review_type, review_type) for review_type in REVIEW_TYPES],
        error_messages={
            'required': "reviewType must be 'good' or 'bad'.",
            'invalid_choice': "reviewType must be 'good' or 'bad'.",
        }
    )
    review = forms.CharField(error_messages={'required': 'review text is required.'})
    # Out-of-range or non-numeric ratings are dropped rather than rejected
    stars = forms.Field(required=False)

    def clean_stars(self):
        return parse_stars(self.cleaned_data.get('stars'))
