from django.urls import path

from apps.exams.consumers import ExamTimerConsumer

websocket_urlpatterns = [
    path("ws/exams/<int:session_id>/", ExamTimerConsumer.as_asgi()),
]
