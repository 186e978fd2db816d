"""
공통 검증 유틸리티

목적: 케이스/스캔/답안 serializer에서 재사용하는 검증 함수들
"""
import re
from rest_framework import serializers


class ValidationPatterns:
    """검증 정규표현식 패턴"""

    # 역할 코드 (예: ADMIN, TRAINEE)
    ROLE_CODE = r'^[A-Z0-9_]+$'

    # 케이스 번호 (예: 001, CXR-014, CONTRIB-123456)
    CASE_NUMBER = r'^[A-Za-z0-9][A-Za-z0-9_-]{0,49}$'

    # 저장소 경로 (파일명만, 디렉터리 이동 금지)
    DICOM_PATH = r'^[A-Za-z0-9][A-Za-z0-9._-]*$'


def validate_role_code(value):
    """역할 코드 검증 (영문 대문자, 숫자, _)"""
    if not re.match(ValidationPatterns.ROLE_CODE, value or ''):
        raise serializers.ValidationError(
            "역할 코드는 영문 대문자, 숫자, _ 만 사용할 수 있습니다."
        )
    return value


def validate_case_number(value):
    """
    케이스 번호 형식 검증

    Args:
        value: 케이스 번호 문자열

    Returns:
        앞뒤 공백을 제거한 케이스 번호

    Raises:
        serializers.ValidationError: 형식이 올바르지 않은 경우
    """
    value = (value or '').strip()
    if not re.match(ValidationPatterns.CASE_NUMBER, value):
        raise serializers.ValidationError(
            '케이스 번호는 영문, 숫자, -, _ 만 사용할 수 있습니다. (예: CXR-014)'
        )
    return value


def validate_dicom_path(value):
    """
    저장소 경로 검증 (빈 값 허용)

    저장소 루트 밖을 가리키는 경로(../, 절대경로)는 허용하지 않는다.
    """
    if not value:
        return value

    if not re.match(ValidationPatterns.DICOM_PATH, value) or '..' in value:
        raise serializers.ValidationError(
            'DICOM 파일 경로가 올바르지 않습니다.'
        )
    return value


def validate_not_blank(value, message='내용을 입력해주세요.'):
    """공백만 있는 문자열 거부 (앞뒤 공백 제거 후 검사)"""
    if value is None or not str(value).strip():
        raise serializers.ValidationError(message)
    return value


class UniqueFieldValidator:
    """
    중복 필드 검증 클래스

    사용 예:
        def validate_case_number(self, value):
            return UniqueFieldValidator.validate(
                self, 'case_number', value, '케이스 번호'
            )
    """

    @staticmethod
    def validate(serializer_instance, field_name, value, field_display_name=None):
        """
        필드 중복 검증

        Args:
            serializer_instance: Serializer 인스턴스
            field_name: 검증할 필드명
            value: 검증할 값
            field_display_name: 에러 메시지에 표시할 필드명

        Returns:
            검증된 값

        Raises:
            serializers.ValidationError: 중복된 경우
        """
        if not value:
            return value

        model_class = serializer_instance.Meta.model
        queryset = model_class.objects.filter(**{field_name: value})

        # 수정 모드일 경우 자기 자신은 제외
        if serializer_instance.instance:
            queryset = queryset.exclude(pk=serializer_instance.instance.pk)

        if queryset.exists():
            display_name = field_display_name or field_name
            raise serializers.ValidationError(
                f'이미 등록된 {display_name}입니다.'
            )

        return value
