from django.contrib import admin
from django.urls import path, re_path, include
from django.conf import settings
from django.conf.urls.static import static
from django.http import JsonResponse

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from authentication.core.response import standardized_response

schema_view = get_schema_view(
    openapi.Info(
        title="Lexury Storefront API",
        default_version='v1',
        description="API documentation for the storefront: catalog, cart, wishlist, orders and reviews",
        contact=openapi.Contact(email="support@lexury.shop"),
        license=openapi.License(name="BSD License"),
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)


def health_check(request):
    return JsonResponse({'status': 'OK', 'message': 'Server is running'})


urlpatterns = [
    path('django-admin/', admin.site.urls),

    # App URLs
    path('api/health', health_check, name='health'),
    path('api/auth/', include('authentication.urls')),
    path('api/', include('store.urls')),
    path('api/', include('transactions.urls')),
    path('api/', include('users.urls')),

    # Swagger
    re_path(r'^swagger(?P<format>\.json|\.yaml)$', schema_view.without_ui(cache_timeout=0), name='schema-json'),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
] + static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)


def json_not_found(request, exception=None):
    return JsonResponse(standardized_response(success=False, error="Route not found"), status=404)


def json_server_error(request):
    return JsonResponse(standardized_response(success=False, error="Internal Server Error"), status=500)


handler404 = json_not_found
handler500 = json_server_error
