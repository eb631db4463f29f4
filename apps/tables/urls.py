"""URL routing for tables."""

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import TableViewSet

router = DefaultRouter()
router.register(r'', TableViewSet, basename='table')

urlpatterns = [path('', include(router.urls))]
