from datetime import date

from django.http import JsonResponse
from django.views.decorators.http import require_GET

from apps.core.dashboard.serializers import to_primitive
from apps.core.dashboard.store import get_store

from .services import summarize_teacher_attendance


def _requested_month(request):
    """Return the first day of the ``?year=&month=`` month, ``None`` when absent, or raise ValueError."""
    year = request.GET.get('year')
    month = request.GET.get('month')
    if not year and not month:
        return None
    return date(int(year), int(month), 1)


@require_GET
def teacher_attendance_summary(request, teacher_id):
    try:
        month_start = _requested_month(request)
    except (TypeError, ValueError):
        return JsonResponse({'error': 'INVALID_MONTH', 'message': 'Provide both year and month (1-12).'}, status=400)

    state = get_store().state
    if teacher_id not in state.teachers:
        return JsonResponse({'error': 'NOT_FOUND', 'message': f'Teacher "{teacher_id}" does not exist.'}, status=404)

    summaries = summarize_teacher_attendance(state, teacher_id, today=month_start)
    return JsonResponse({'teacher_id': teacher_id, 'summaries': to_primitive(summaries)})
