from django.urls import path
from . import views
app_name = "catalog"
urlpatterns = [
    path("products", views.product_list_view, name="product_list"),
    path("add-product", views.add_product_view, name="add_product"),
    path("delete-product/<str:product_id>", views.delete_product_view, name="delete_product"),
]
