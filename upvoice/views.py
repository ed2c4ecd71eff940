"""
Core views for UpVoice
"""
from django.http import JsonResponse


def health_check(request):
    """Health check endpoint for monitoring"""
    return JsonResponse({
        'status': 'healthy',
        'service': 'upvoice',
        'version': '0.1.0'
    })
