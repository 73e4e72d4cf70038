"""URL configuration for VeloRent.

Routes the Django admin, the versioned API of each app and the OpenAPI
schema.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/fleet/', include('apps.fleet.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/reservations/', include('apps.reservations.urls')),
    path('api/v1/throttle/', include('apps.throttle.urls')),
    # API schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]
