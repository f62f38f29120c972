import os

from solfolio.common.logger import PipelineLogger

# 테스트 중에는 파일 로그를 남기지 않음
os.environ.setdefault("LOG_TO_FILE", "false")
PipelineLogger.configure(log_to_file=False)
