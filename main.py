"""애플리케이션 진입점 (DI Container 기반)

Solana 지갑 포트폴리오 스냅샷
- 설정된 모든 수집기를 동시에 실행
- 다중 공급자 가격 해석 (서킷브레이커 + 캐시)
- 결과 스냅샷을 JSON으로 출력

Usage:
    python main.py <owner>                          # 전체 수집기
    python main.py <owner> --collector wallet-solana # 단일 수집기
    python main.py --list                            # 등록된 수집기 목록
"""

import argparse
import asyncio
import inspect
import sys
from typing import Any

from solfolio.common.logger import PipelineLogger
from solfolio.common.serde import to_bytes
from solfolio.config.settings import log_settings

PipelineLogger.configure(
    level=log_settings.level, log_dir=log_settings.dir, log_to_file=log_settings.to_file
)

from solfolio.application.orchestrator import FetcherOrchestrator  # noqa: E402
from solfolio.config.containers import ApplicationContainer  # noqa: E402

logger = PipelineLogger.get_logger("main", "app")


async def _resolve(value: Any) -> Any:
    # 비동기 Resource에 의존하는 provider는 awaitable을 반환
    return await value if inspect.isawaitable(value) else value


class Application:
    """애플리케이션 메인 클래스

    책임:
    - DI Container 관리 (Resource 초기화/정리)
    - 오케스트레이터 실행
    - Graceful Shutdown
    """

    def __init__(self) -> None:
        self.container = ApplicationContainer()
        self.orchestrator: FetcherOrchestrator | None = None

    async def initialize(self) -> None:
        """Resource 초기화 (캐시, HTTP 세션, Redis, 가격 갱신 태스크) 후 오케스트레이터 준비"""
        logger.info("Resource 초기화 시작...")
        await _resolve(self.container.init_resources())
        self.orchestrator = await _resolve(self.container.orchestrator())
        logger.info("✅ 모든 Resource 초기화 완료")

    async def run(self, owner: str, collector_id: str | None = None) -> dict[str, Any]:
        if self.orchestrator is None:
            raise RuntimeError("initialize() must be called first")
        if collector_id:
            elements = await self.orchestrator.fetch_one(collector_id, owner)
            return {
                "owner": owner,
                "collector_id": collector_id,
                "elements": [e.model_dump(mode="json") for e in elements],
            }
        snapshot = await self.orchestrator.fetch_all(owner)
        return snapshot.to_dict()

    async def diagnostics(self) -> dict[str, Any]:
        breakers = self.container.infra.breakers()
        return {
            "collectors": self.orchestrator.list_collectors() if self.orchestrator else [],
            "circuits": breakers.describe_all(),
        }

    async def shutdown(self) -> None:
        logger.info("정리 작업 시작...")
        await _resolve(self.container.shutdown_resources())
        logger.info("✅ 프로그램 종료 완료")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Solana wallet portfolio snapshot")
    parser.add_argument("owner", nargs="?", help="wallet address")
    parser.add_argument("--collector", help="run a single collector by id")
    parser.add_argument("--list", action="store_true", help="list registered collectors")
    parser.add_argument(
        "--diagnostics", action="store_true", help="print circuit states after the run"
    )
    args = parser.parse_args(argv)
    if not args.owner and not args.list:
        parser.error("owner is required unless --list is given")
    return args


async def main(argv: list[str] | None = None) -> None:
    """메인 실행 함수"""
    args = parse_args(argv)
    app = Application()

    try:
        await app.initialize()
        if args.list:
            output: dict[str, Any] = {"collectors": app.orchestrator.list_collectors()}
        else:
            output = await app.run(args.owner, args.collector)
            if args.diagnostics:
                output["diagnostics"] = await app.diagnostics()
        sys.stdout.buffer.write(to_bytes(output, indent=True) + b"\n")
        sys.stdout.flush()
    finally:
        await app.shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n프로그램이 종료되었습니다.")
