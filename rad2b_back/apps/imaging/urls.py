from django.urls import path

from .views import (
    DicomMetadataView,
    DicomRemoveView,
    DicomUploadView,
    SignedDownloadView,
    SignedUrlView,
)

urlpatterns = [
    path("upload/", DicomUploadView.as_view(), name="imaging-upload"),
    path("remove/", DicomRemoveView.as_view(), name="imaging-remove"),
    path("signed-url/", SignedUrlView.as_view(), name="imaging-signed-url"),
    path("metadata/", DicomMetadataView.as_view(), name="imaging-metadata"),
    path("files/<str:token>/", SignedDownloadView.as_view(), name="imaging-signed-download"),
]
