import json

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .forms import build_action
from .serializers import serialize_state
from .store import get_store


ERROR_STATUS_CODES = {
    'NOT_FOUND': 404,
    'REFERENCE_MISMATCH': 400,
    'INVALID_ACTION': 400,
    'LOGIN_CODE_UNAVAILABLE': 409,
}


def error_response(error):
    return JsonResponse(
        {
            'error': error.error_code,
            'message': error.message,
            'details': error.details,
        },
        status=ERROR_STATUS_CODES.get(error.error_code, 400),
    )


def read_json_body(request):
    """Return the decoded JSON object of the request, or ``None`` if it is not one."""
    try:
        body = json.loads(request.body or b'{}')
    except (UnicodeDecodeError, ValueError):
        return None
    return body if isinstance(body, dict) else None


@require_GET
def dashboard_state(request):
    return JsonResponse(serialize_state(get_store().state))


@csrf_exempt
@require_POST
def dashboard_dispatch(request):
    body = read_json_body(request)
    if body is None:
        return JsonResponse({'error': 'INVALID_JSON', 'message': 'Request body must be a JSON object.'}, status=400)

    action, errors = build_action(body.get('type'), body.get('payload'))
    if errors:
        return JsonResponse({'error': 'INVALID_PAYLOAD', 'details': errors}, status=400)

    result = get_store().try_dispatch(action)
    if not result.ok:
        return error_response(result.error)
    return JsonResponse({'type': action.type, 'state': serialize_state(result.state)})
