from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET

from apps.core.dashboard.exceptions import DashboardError
from apps.core.dashboard.serializers import to_primitive
from apps.core.dashboard.store import get_store
from apps.core.dashboard.views import error_response

from .services import (
    kindergarten_overview,
    network_overview,
    notifications_sent_by,
    pending_applications,
    student_overview,
    tuition_csv_bytes,
    tuition_pdf_bytes,
    tuition_report_rows,
)


@require_GET
def reports_network(request):
    state = get_store().state
    return JsonResponse({
        'overview': network_overview(state),
        'pending_applications': to_primitive(pending_applications(state)),
    })


@require_GET
def reports_kindergarten(request, kindergarten_id):
    state = get_store().state
    try:
        overview = kindergarten_overview(state, kindergarten_id)
    except DashboardError as exc:
        return error_response(exc)

    kindergarten = state.kindergartens[kindergarten_id]
    overview['sent_notifications'] = to_primitive(notifications_sent_by(state, kindergarten.director_id))
    return JsonResponse(overview)


@require_GET
def reports_student(request, student_id):
    try:
        overview = student_overview(get_store().state, student_id)
    except DashboardError as exc:
        return error_response(exc)
    return JsonResponse(to_primitive(overview))


def _tuition_rows(teacher_id):
    state = get_store().state
    rows = tuition_report_rows(state, teacher_id)
    return state, state.teachers[teacher_id], rows


@require_GET
def reports_tuition_csv(request, teacher_id):
    try:
        _state, teacher, rows = _tuition_rows(teacher_id)
    except DashboardError as exc:
        return error_response(exc)

    response = HttpResponse(tuition_csv_bytes(rows), content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="tuition_{teacher.id}.csv"'
    return response


@require_GET
def reports_tuition_pdf(request, teacher_id):
    try:
        state, teacher, rows = _tuition_rows(teacher_id)
    except DashboardError as exc:
        return error_response(exc)

    pdf = tuition_pdf_bytes(
        f'Monthly tuition - {teacher.name}',
        rows,
        currency=state.settings.localization.currency,
    )
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="tuition_{teacher.id}.pdf"'
    return response
