"""
Org Auth view decorators
"""

from functools import wraps

from django.http import JsonResponse

from .constants import ErrorCode, HttpStatus


def require_access_token(view_func):
    """
    Require an ``Authorization: Bearer <token>`` header

    The raw token is stored on ``request.access_token``; verifying it is
    left to the gateway call the view makes.

    Usage:
        @api_view(['GET'])
        @require_access_token
        def profile(request):
            result = get_gateway().profile(request.access_token)
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        token = bearer_token(request)
        if not token:
            return JsonResponse({
                'error': 'Access token required',
                'code': ErrorCode.UNAUTHORIZED
            }, status=HttpStatus.UNAUTHORIZED)

        request.access_token = token
        return view_func(request, *args, **kwargs)

    return wrapper


def bearer_token(request):
    """Token from the Authorization header, or None"""
    header = request.META.get('HTTP_AUTHORIZATION', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer':
        return None
    return token.strip() or None
