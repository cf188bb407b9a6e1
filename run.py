# run.py
"""
개발 서버 실행 스크립트.
운영 환경에서는 WSGI 서버(gunicorn 등)가 'run:app' 을 불러갑니다.
"""
import os
from dotenv import load_dotenv

# 실행 위치와 관계없이 프로젝트 루트의 '.env' 를 먼저 읽어야 설정 클래스가 올바른 값을 가집니다.
basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(dotenv_path=os.path.join(basedir, '.env'))

from app import create_app  # noqa: E402

app = create_app(os.getenv('FLASK_ENV', 'development'))

if __name__ == '__main__':
    app.run(
        host=os.getenv('FLASK_RUN_HOST', '127.0.0.1'),
        port=int(os.getenv('FLASK_RUN_PORT', 5000)),
        debug=app.config.get('DEBUG', False),
    )
