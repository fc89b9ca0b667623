from django.urls import path
from .views import ReviewView, DueItemsView, ScheduleView, ItemView

urlpatterns = [
    path("reviews", ReviewView.as_view(), name="review"),
    path("owners/<str:owner_id>/due-items", DueItemsView.as_view(), name="due-items"),
    path("owners/<str:owner_id>/items/<str:item_id>", ItemView.as_view(), name="item"),
    path("owners/<str:owner_id>/items/<str:item_id>/schedule", ScheduleView.as_view(), name="schedule"),
]
