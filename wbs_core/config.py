import logging
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    WBS 엔진의 설정을 관리하는 클래스입니다.
    환경 변수(WBS_ 접두사) 또는 .env 파일에서 설정값을 읽어옵니다.
    """

    # 트리 구조 제약
    max_level: int = 5  # 작업 항목의 최대 깊이 (루트 = 1)

    # 타임라인(간트) 설정
    min_timeline_days: int = 30  # 날짜 범위가 이보다 짧으면 최소 일수만큼 확장
    default_column_width: int = 40  # 열 하나의 픽셀 너비
    default_expand_level: int = 5  # 초기 펼침 깊이 (0부터 시작하는 깊이 기준)

    # 이동 대상 표시 경로 구분자
    path_separator: str = " / "

    # 로깅
    log_level: str = "INFO"

    class Config:
        # 설정을 읽어올 파일 지정
        env_prefix = "WBS_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """
    설정을 가져오는 함수입니다.
    @lru_cache를 사용하여 한 번 읽은 설정은 메모리에 저장해두고 재사용합니다.
    """
    return Settings()


def setup_logging(level: str | None = None) -> None:
    """로깅 기본 설정. level이 없으면 설정값(log_level)을 사용합니다."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
