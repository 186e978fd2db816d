from rest_framework import serializers
from rest_framework.fields import empty

from utils.validators import validate_dicom_path


class OptionalBooleanField(serializers.BooleanField):
    # multipart 에서 값이 없으면 False 대신 default 사용
    default_empty_html = empty


class DicomUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    # 케이스 편집 중 업로드 = 임시 파일 (케이스 저장 시 확정)
    temporary = OptionalBooleanField(default=True)


class DicomPathSerializer(serializers.Serializer):
    path = serializers.CharField(max_length=255, validators=[validate_dicom_path])


class SignedUrlRequestSerializer(DicomPathSerializer):
    expires_in = serializers.IntegerField(required=False, min_value=1, max_value=7 * 24 * 3600)


class DicomRemoveSerializer(serializers.Serializer):
    paths = serializers.ListField(
        child=serializers.CharField(max_length=255, validators=[validate_dicom_path]),
        allow_empty=False,
    )
