from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from solfolio.core.dto.io.position import PositionRecordDTO
from solfolio.core.types import CollectorStatus


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class CollectorOutcomeDomain:
    """수집기 1회 실행 결과 (성공/실패 공통)."""

    collector_id: str
    status: CollectorStatus
    duration_ms: float
    item_count: int = 0
    error_message: str | None = None
    error_code: str | None = None
    from_cache: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == CollectorStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        report: dict[str, Any] = {
            "status": self.status.value,
            "duration_ms": round(self.duration_ms, 3),
        }
        if self.succeeded:
            report["count"] = self.item_count
            if self.from_cache:
                report["cached"] = True
        else:
            report["error"] = self.error_message
            report["error_code"] = self.error_code
        return report


@dataclass(slots=True, frozen=True, repr=False, match_args=False, kw_only=True)
class PortfolioSnapshotDomain:
    """한 번의 오케스트레이터 실행이 만든 포트폴리오 스냅샷.

    - 모든 수집기가 settle된 뒤에만 생성됩니다.
    - total_value_usd는 성공한 수집기 요소들의 value_usd 합입니다.
    """

    owner: str
    captured_at: float
    total_value_usd: float
    elements: tuple[PositionRecordDTO, ...]
    per_collector_report: dict[str, CollectorOutcomeDomain] = field(default_factory=dict)
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "captured_at": self.captured_at,
            "total_value_usd": self.total_value_usd,
            "elements": [element.model_dump(mode="json") for element in self.elements],
            "collector_reports": {
                collector_id: outcome.to_dict()
                for collector_id, outcome in self.per_collector_report.items()
            },
            "duration_ms": round(self.duration_ms, 3),
        }
