"""
URL configuration for the artist marketplace ledger.

"""
from django.urls import path, include

from payments.admin import admin_site


urlpatterns = [
    path('sys/admin/', admin_site.urls),
    path("api/", include("api.urls")),
]
