# app/core/config.py

import os # 'os' 모듈: 환경 변수를 읽기 위해 사용합니다.


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰을 서명하는 데 사용되어 토큰의 위변조를 방지합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ALGORITHM = 'HS256'

    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    # 'firestore' 또는 'memory'. memory는 로컬 개발/테스트용 인메모리 저장소입니다.
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'firestore')

    # 일정 요약 문장 생성용 OpenAI 설정. 키가 없으면 요약 없이 규칙 기반 일정만 반환합니다.
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

    # 공개 스토리 피드 페이지 크기
    DEFAULT_PAGE_SIZE = int(os.getenv('DEFAULT_PAGE_SIZE', 20))
    MAX_PAGE_SIZE = int(os.getenv('MAX_PAGE_SIZE', 100))

    # 장소 순서 변경 시 기존 장소 집합의 순열인지 검사할지 여부
    STRICT_PLACE_REORDER = _env_bool('STRICT_PLACE_REORDER', True)


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    # TESTING = True: 예외가 전역 핸들러를 거쳐 JSON으로 변환되는 흐름은 그대로 유지됩니다.
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('TEST_JWT_SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    STORE_BACKEND = 'memory'
    OPENAI_API_KEY = None


class ProductionConfig(Config):
    """운영 환경 설정. 응답에 내부 오류 정보가 절대 포함되지 않습니다."""
    DEBUG = False


# FLASK_ENV 값에 따라 create_app 함수에서 적절한 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
