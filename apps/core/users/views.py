from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.core.dashboard.exceptions import DashboardError
from apps.core.dashboard.serializers import to_primitive
from apps.core.dashboard.store import get_store
from apps.core.dashboard.views import error_response, read_json_body

from .services import find_parent_user_by_phone, find_teacher_user_by_code, users_for_role


@require_GET
def user_list(request):
    try:
        users = users_for_role(get_store().state, request.GET.get('role', ''))
    except DashboardError as exc:
        return error_response(exc)
    return JsonResponse({'users': to_primitive(users)})


def _login_lookup(request, finder, field):
    body = read_json_body(request)
    if body is None:
        return JsonResponse({'error': 'INVALID_JSON', 'message': 'Request body must be a JSON object.'}, status=400)
    try:
        user = finder(get_store().state, body.get(field, ''))
    except DashboardError as exc:
        return error_response(exc)
    return JsonResponse({'user': to_primitive(user)})


@csrf_exempt
@require_POST
def teacher_code_login(request):
    return _login_lookup(request, find_teacher_user_by_code, 'code')


@csrf_exempt
@require_POST
def parent_phone_login(request):
    return _login_lookup(request, find_parent_user_by_phone, 'phone')
