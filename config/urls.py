"""
URL configuration for tutor-billing.
Teacher billing API lives under /api/teacher/billing/ (see billing/urls.py).
"""
from django.conf import settings
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path
from django.views.decorators.http import require_GET
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView


@require_GET
def health_view(request):
    """Liveness plus the billing defaults this instance runs with. No auth."""
    return JsonResponse({
        'status': 'ok',
        'service': 'tutor-billing',
        'billing': {
            'defaultGracePeriodDays': settings.BILLING_DEFAULT_GRACE_PERIOD_DAYS,
            'rosterWorkers': settings.BILLING_ROSTER_WORKERS,
        },
    })


@require_GET
def api_root(request):
    return JsonResponse({
        'name': 'Tutor Billing API',
        'version': settings.SPECTACULAR_SETTINGS['VERSION'],
        'endpoints': {
            'health': '/api/health/',
            'studentStatus': '/api/teacher/billing/students/{id}/status?groupId=',
            'studentOverview': '/api/teacher/billing/students/{id}/overview',
            'groupSummaries': '/api/teacher/billing/groups/{id}/summaries',
            'groupStats': '/api/teacher/billing/groups/{id}/stats',
            'teacherStats': '/api/teacher/billing/stats',
            'generatePending': '/api/teacher/billing/groups/{id}/generate-pending',
            'docs': '/api/docs/',
        },
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('api/', api_root),
    path('api/health/', health_view, name='api-health'),
    path('admin/', admin.site.urls),

    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    path('api/teacher/billing/', include('billing.urls')),
]
