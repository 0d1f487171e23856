from django.urls import path
from . import views
app_name = "orders"
urlpatterns = [
    path("create-payment-intent", views.create_payment_intent_view, name="create_payment_intent"),
    path("create-paystack-order", views.create_paystack_order_view, name="create_paystack_order"),
    path("create-opay-order", views.create_opay_order_view, name="create_opay_order"),
    path("create-opay-session", views.create_opay_order_view, name="create_opay_session"),  # alias
    path("place-order", views.place_order_view, name="place_order"),
    path("orders", views.order_list_view, name="order_list"),
    path("orders/<str:payment_id>", views.order_detail_view, name="order_detail"),
]
