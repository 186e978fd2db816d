import logging

from django.http import FileResponse
from rest_framework import status
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse

from utils.exceptions import (
    PermissionDeniedException,
    ResourceNotFoundException,
    StorageException,
    ValidationException,
)
from . import storage
from .dicom_utils import extract_metadata, is_dicom
from .serializers import (
    DicomPathSerializer,
    DicomRemoveSerializer,
    DicomUploadSerializer,
    SignedUrlRequestSerializer,
)
from .signing import create_signed_url, verify_signed_token

logger = logging.getLogger(__name__)


def _require_existing(path):
    if not storage.exists(path):
        raise ResourceNotFoundException(message="DICOM 파일을 찾을 수 없습니다.", field="path")
    return path


class DicomUploadView(APIView):
    """
    DICOM 업로드

    POST /api/imaging/upload/ (multipart: file, temporary)
    - DICOM 이 아니면 400
    - 저장 경로 + 서명 URL + 메타데이터 반환
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        tags=["Imaging"],
        summary="DICOM 업로드",
        request={"multipart/form-data": DicomUploadSerializer},
        responses={201: OpenApiResponse(description="업로드 성공"), 400: OpenApiResponse(description="DICOM 아님")},
    )
    def post(self, request):
        serializer = DicomUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        uploaded_file = serializer.validated_data["file"]

        data = uploaded_file.read()
        if not is_dicom(data):
            raise ValidationException(
                code="INVALID_DICOM",
                message="유효한 DICOM 파일이 아닙니다.",
                field="file",
            )

        try:
            path = storage.save_upload(
                uploaded_file,
                temporary=serializer.validated_data["temporary"],
                owner_id=request.user.id,
            )
        except OSError as e:
            logger.error(f"DICOM 업로드 실패: {e}")
            raise StorageException(message="DICOM 파일 저장에 실패했습니다.")

        return Response({
            "path": path,
            "metadata": extract_metadata(data),
            **create_signed_url(path, request=request),
        }, status=status.HTTP_201_CREATED)


class DicomRemoveView(APIView):
    """
    DICOM 삭제

    관리자는 모든 파일, 그 외 사용자는 본인이 업로드한 임시(temp_u<id>_) 파일만 삭제 가능
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Imaging"], summary="DICOM 삭제", request=DicomRemoveSerializer)
    def post(self, request):
        serializer = DicomRemoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        paths = serializer.validated_data["paths"]

        if not request.user.is_admin and not all(storage.is_owned_temporary(p, request.user.id) for p in paths):
            raise PermissionDeniedException(message="본인이 업로드한 임시 파일만 삭제할 수 있습니다.")

        removed = storage.remove(paths)
        return Response({"removed": removed})


class SignedUrlView(APIView):
    """저장된 파일의 서명 URL 발급 (기본 3600초)"""
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Imaging"], summary="서명 URL 발급", request=SignedUrlRequestSerializer)
    def post(self, request):
        serializer = SignedUrlRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        path = _require_existing(serializer.validated_data["path"])

        return Response(create_signed_url(
            path,
            expires_in=serializer.validated_data.get("expires_in"),
            request=request,
        ))


class SignedDownloadView(APIView):
    """
    서명 URL 다운로드

    GET /api/imaging/files/<token>/
    - 토큰 자체가 인증 수단 (로그인 불필요)
    - 만료/위조 403, 파일 없음 404
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(tags=["Imaging"], summary="서명 URL 다운로드", responses={(200, "application/dicom"): bytes})
    def get(self, request, token):
        path = verify_signed_token(token)
        _require_existing(path)

        response = FileResponse(
            storage.open_file(path),
            content_type="application/dicom",
        )
        response["Content-Disposition"] = f'inline; filename="{path}"'
        return response


class DicomMetadataView(APIView):
    """저장된 파일의 modality / dimensions / pixelSpacing"""
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Imaging"],
        summary="DICOM 메타데이터",
        parameters=[OpenApiParameter("path", str, required=True)],
    )
    def get(self, request):
        serializer = DicomPathSerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        path = _require_existing(serializer.validated_data["path"])

        with storage.open_file(path) as f:
            metadata = extract_metadata(f.read())

        return Response({"path": path, "metadata": metadata})
