"""
Public review-link endpoints.

These are called by the review page a client lands on from their email.
There is no session: every request carries businessId, clientId and the
signed token, and is authorised by the token alone.
"""
import json
import logging
from django.http import JsonResponse
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from django_ratelimit.decorators import ratelimit
from clients.ledger import record_click
from core.models import Business
from .exceptions import InvalidLinkToken, ReviewAlreadySubmitted, ReviewLinkError
from .forms import ReviewLinkForm, SubmitReviewForm
from .services import submit_review
from .tokens import verify_link_token

logger = logging.getLogger("reviews")


def error_response(code, message, status, **extra):
    return JsonResponse({'error': code, 'message': message, **extra}, status=status)


def link_error_response(error, status=None):
    return JsonResponse(error.as_dict(), status=status or error.status)


def server_error_response():
    return error_response('SERVER_ERROR', 'Something went wrong. Please try again.', 500)


def parse_json_body(request):
    """Decoded JSON object body, or None if the body is not a JSON object"""
    try:
        data = json.loads(request.body or b'{}')
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def validate(form_class, request):
    """
    Bind and validate a public payload.

    Returns:
        tuple: (cleaned_data, None) or (None, error JsonResponse)
    """
    data = parse_json_body(request)
    if data is None:
        return None, error_response('INVALID_INPUT', 'Invalid JSON body.', 400)

    form = form_class(data)
    if not form.is_valid():
        field, message = form.first_error()
        return None, error_response('INVALID_INPUT', message, 400, field=field)

    return form.cleaned_data, None


def check_token(cleaned_data):
    check = verify_link_token(cleaned_data['token'], cleaned_data['businessId'], cleaned_data['clientId'])
    if not check.ok:
        raise InvalidLinkToken(check.reason)
    return check


def client_meta(request):
    return {
        'ip': request.META.get('REMOTE_ADDR', ''),
        'ua': request.META.get('HTTP_USER_AGENT', '')[:512],
    }


@csrf_exempt
@never_cache
@require_http_methods(["POST"])
def business_details(request):
    """Business shown on the review page"""
    data, error = validate(ReviewLinkForm, request)
    if error:
        return error

    try:
        check_token(data)
        business = Business.objects.by_public_id(data['businessId']).first()
        if business is None:
            return error_response('NOT_FOUND', 'Business not found.', 404)

        return JsonResponse({
            'id': str(business.uuid),
            'slug': business.slug,
            'display_name': business.name,
            'description': business.description,
            'google_review_link': business.google_review_link,
        })
    except ReviewLinkError as e:
        return link_error_response(e)
    except Exception:
        logger.exception("Failed to load business details for review link")
        return server_error_response()


@csrf_exempt
@require_http_methods(["POST"])
def review_clicked(request):
    """Record that the client opened their review link"""
    data, error = validate(ReviewLinkForm, request)
    if error:
        return error

    try:
        check_token(data)
        result = record_click(data['businessId'], data['clientId'], meta=client_meta(request))
        return JsonResponse({'already': result.already})
    except ReviewLinkError as e:
        return link_error_response(e)
    except Exception:
        logger.exception("Failed to record review link click")
        return server_error_response()


@csrf_exempt
@require_http_methods(["POST"])
@ratelimit(key='ip', rate='10/h', method='POST', block=True)
def submit_review_view(request):
    """Handle the review form submission"""
    data, error = validate(SubmitReviewForm, request)
    if error:
        return error

    try:
        result = submit_review(
            token=data['token'],
            business_id=data['businessId'],
            client_id=data['clientId'],
            review_type=data['reviewType'],
            review=data['review'],
            stars=data['stars'],
        )
        return JsonResponse({'ok': True, 'mode': result.mode})
    except ReviewAlreadySubmitted as e:
        return link_error_response(e, status=409)
    except ReviewLinkError as e:
        return link_error_response(e)
    except Exception:
        logger.exception("Failed to submit review")
        return server_error_response()
