from django.contrib import admin
from django.urls import include, path

from . import views

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("catalog.urls")),
    path("api/", include("orders.urls")),
    path("api/webhooks/", include("payments.urls")),
    path("", views.health, name="health"),
]

handler404 = "dropship.views.error_404_view"
handler500 = "dropship.views.error_500_view"
