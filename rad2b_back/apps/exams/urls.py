from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import ExamSessionViewSet

# /api/exams/
router = SimpleRouter()
router.register(r'', ExamSessionViewSet, basename='exam')

urlpatterns = [
    path('', include(router.urls)),
]
