from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import AnswerFeedbackView, CaseAttemptViewSet, ProgressSummaryView

router = SimpleRouter()
router.register(r'cases', CaseAttemptViewSet, basename='case-attempt')

urlpatterns = [
    path('progress/', ProgressSummaryView.as_view(), name='attempt-progress'),
    path('answers/<int:pk>/feedback/', AnswerFeedbackView.as_view(), name='answer-feedback'),
    path('', include(router.urls)),
]
