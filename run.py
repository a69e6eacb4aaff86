# run.py
from dotenv import load_dotenv
import os
from blog_app import create_app

basedir = os.path.abspath(os.path.dirname(__file__))
# 실행 디렉터리의 '.env' 파일을 명시적으로 로드합니다.
dotenv_path = os.path.join(basedir, '.env')
load_dotenv(dotenv_path=dotenv_path)

app = create_app()

if __name__ == '__main__':
    host = os.getenv('FLASK_RUN_HOST', '127.0.0.1')
    port = int(os.getenv('FLASK_RUN_PORT', 5000))
    debug = app.config.get('DEBUG', False)
    # SSE 스트림이 요청 하나를 오래 점유하므로 threaded 모드로 실행합니다.
    app.run(host=host, port=port, debug=debug, threaded=True)
