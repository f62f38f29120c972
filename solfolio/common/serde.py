"""스냅샷/HTTP/CLI 출력용 orjson 직렬화 유틸.

캐시 스냅샷은 사람이 읽을 수 있는 평면 JSON이어야 하므로,
도메인 dataclass는 "__type__" 태그를 붙인 dict로 인코딩하고 로드 시 복원합니다.
"""

from __future__ import annotations

import dataclasses
from typing import Any

import orjson

from solfolio.core.dto.internal.price import PriceQuoteDomain, TokenMetadataDomain

TYPE_TAG = "__type__"

# 스냅샷으로 복원 가능한 도메인 타입 (클래스 이름 → 클래스)
_SNAPSHOT_TYPES: dict[str, type] = {
    PriceQuoteDomain.__name__: PriceQuoteDomain,
    TokenMetadataDomain.__name__: TokenMetadataDomain,
}


def register_snapshot_type(cls: type) -> type:
    """스냅샷 복원 대상 dataclass를 등록합니다 (데코레이터로도 사용 가능)."""
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls.__name__} is not a dataclass")
    _SNAPSHOT_TYPES[cls.__name__] = cls
    return cls


def default_json_encoder(obj: Any) -> Any:
    """orjson default 훅 - orjson이 모르는 타입 처리"""
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def to_bytes(obj: Any, *, indent: bool = False) -> bytes:
    option = orjson.OPT_NON_STR_KEYS
    if indent:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, default=default_json_encoder, option=option)


def encode_snapshot_value(value: Any) -> Any:
    """캐시 값 → JSON 호환 값. 등록된 dataclass는 타입 태그를 붙입니다."""
    cls_name = type(value).__name__
    if dataclasses.is_dataclass(value) and cls_name in _SNAPSHOT_TYPES:
        payload = {
            f.name: encode_snapshot_value(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
        payload[TYPE_TAG] = cls_name
        return payload
    if isinstance(value, dict):
        return {str(k): encode_snapshot_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_snapshot_value(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    raise TypeError(f"Unsupported snapshot value: {cls_name}")


def decode_snapshot_value(raw: Any) -> Any:
    """encode_snapshot_value의 역변환. 모르는 타입 태그는 ValueError."""
    if isinstance(raw, dict):
        tag = raw.get(TYPE_TAG)
        decoded = {k: decode_snapshot_value(v) for k, v in raw.items() if k != TYPE_TAG}
        if tag is None:
            return decoded
        cls = _SNAPSHOT_TYPES.get(tag)
        if cls is None:
            raise ValueError(f"Unknown snapshot type tag: {tag}")
        return cls(**decoded)
    if isinstance(raw, list):
        return [decode_snapshot_value(v) for v in raw]
    return raw
