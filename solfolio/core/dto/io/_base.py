"""I/O 경계 DTO 기반 클래스 모듈."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# 불변 I/O 모델 공통 설정
OPTIMIZED_CONFIG = ConfigDict(
    # 런타임 검증
    use_enum_values=True,  # Enum → 값 직렬화
    extra="forbid",  # 알 수 없는 필드 금지
    validate_default=True,  # 기본값도 검증
    str_strip_whitespace=True,  # 문자열 자동 트림
    # 불변성
    frozen=True,
    arbitrary_types_allowed=False,
)

# 외부 공급자 응답 파싱용 (모르는 필드는 무시)
PROVIDER_RESPONSE_CONFIG = ConfigDict(
    extra="ignore",
    frozen=True,
    populate_by_name=True,
)


class BaseIOModelDTO(BaseModel):
    """I/O 경계용 공통 Pydantic v2 베이스 모델.

    특징:
    - 불변 객체 (frozen=True)
    - Enum 직렬화를 값(value)로 고정
    - 알 수 없는 필드 금지 (extra="forbid")
    """

    model_config = OPTIMIZED_CONFIG


class ProviderResponseDTO(BaseModel):
    """외부 API 응답 파싱용 베이스 (관대한 파싱)."""

    model_config = PROVIDER_RESPONSE_CONFIG
