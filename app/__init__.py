# app/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from app.core.config import config_by_name
from app.core.errors import TravelAppError
from app.core.security import register_jwt_callbacks

# - API 블루프린트
from app.api.auth.routes import auth_bp
from app.api.users.routes import users_bp
from app.api.trips.routes import trips_bp
from app.api.stories.routes import stories_bp
from app.api.recommendations.routes import recommendations_bp
from app.api.uploads.routes import uploads_bp

# - 서비스 모듈
from app.services.firestore_service import InMemoryDocumentStore, FirestoreDocumentStore
from app.services.identity_service import FirebaseIdentityService
from app.services import storage_service as storage_service_module
from app.services import openai_service as openai_service_module
from app.api.auth.services import AuthService
from app.api.users.services import UserService
from app.api.trips.services import TripService
from app.api.stories.services import StoryService
from app.api.recommendations.services import PlaceCatalog, RecommendationService
from app.api.recommendations.itinerary import ItineraryPlanner


def _init_firebase(app: Flask):
    if firebase_admin._apps:
        return
    cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
    if not cred_path or not os.path.exists(cred_path):
        raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
    cred = credentials.Certificate(cred_path)
    firebase_admin.initialize_app(cred, {
        'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
    })


def create_app(config_name=None, store=None, identity_provider=None, storage=None,
               text_generator=None, clock=None):
    """
    Flask 애플리케이션 팩토리 함수.

    외부 의존성(저장소, 인증 제공자, 스토리지, 생성형 AI, 시계)은 인자로 주입할 수 있으며,
    주입하지 않은 것만 설정에 따라 Firebase/OpenAI 구현으로 생성합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)

    use_firestore = store is None and app.config['STORE_BACKEND'] == 'firestore'
    if use_firestore or identity_provider is None or storage is None:
        _init_firebase(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용/핵심 서비스 먼저 생성
    if store is None:
        store = FirestoreDocumentStore(clock=clock) if use_firestore else InMemoryDocumentStore(clock=clock)
    app.services['store'] = store
    logging.info(f"Document store initialized: {type(store).__name__}")

    if storage is None:
        try:
            storage = storage_service_module.StorageService()
            storage.init_app(app)
            logging.info("Storage service initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}")
            raise
    app.services['storage'] = storage

    if text_generator is None:
        text_generator = openai_service_module.OpenAIService()
        text_generator.init_app(app)
    app.services['openai'] = text_generator

    app.services['identity'] = identity_provider or FirebaseIdentityService()

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['users'] = UserService(store, app.services['identity'], clock=clock)
    app.services['auth'] = AuthService(store, app.services['identity'], app.services['users'], clock=clock)
    app.services['trips'] = TripService(store, clock=clock, strict_reorder=app.config['STRICT_PLACE_REORDER'])
    app.services['stories'] = StoryService(store, clock=clock)

    catalog = PlaceCatalog(store)
    app.services['recommendations'] = RecommendationService(catalog, store, clock=clock)
    app.services['itinerary'] = ItineraryPlanner(catalog, text_generator)

    # - 토큰 무효화(로그아웃) 검사 콜백
    register_jwt_callbacks(jwt, app.services['auth'].is_token_revoked)

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(trips_bp, url_prefix='/api/trips')
    app.register_blueprint(stories_bp, url_prefix='/api/stories')
    app.register_blueprint(recommendations_bp, url_prefix='/api/recommendations')
    app.register_blueprint(uploads_bp, url_prefix='/api/uploads')

    @app.route('/health', methods=['GET'])
    def health_check():
        return jsonify({"status": "ok"}), 200

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(TravelAppError)
    def handle_app_error(err):
        if err.status_code >= 500:
            logging.error(f"{type(err).__name__}: {err.message}", exc_info=True)
        return jsonify(err.to_response()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {
            "success": False,
            "error_code": "VALIDATION_ERROR",
            "message": "입력값 유효성 검사에 실패했습니다.",
            "details": err.messages,
        }
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        response = {
            "success": False,
            "error_code": err.name.upper().replace(' ', '_'),
            "message": err.description,
        }
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {
            "success": False,
            "error_code": "INTERNAL_SERVER_ERROR",
            "message": "서버 내부에서 예상치 못한 오류가 발생했습니다.",
        }
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
