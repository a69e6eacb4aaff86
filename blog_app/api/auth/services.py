# blog_app/api/auth/services.py
import logging
from datetime import datetime, timezone
from typing import Optional

from firebase_admin import auth as firebase_auth

from blog_app.core.errors import AuthenticationError
from blog_app.models.identity import Identity
from blog_app.services.document_store import DocumentStore, Query, SERVER_TIMESTAMP

REVOKED_TOKENS_COLLECTION = 'revoked_tokens'


class AuthService:
    """
    Identity Provider(Firebase Auth) 연동.
    인증 프로토콜 자체는 구현하지 않고, 브라우저가 받아 온 ID 토큰을 검증해 신원만 확인합니다.
    """
    def __init__(self, store: DocumentStore):
        self.store = store

    def verify_id_token(self, id_token: str) -> Identity:
        """Firebase ID 토큰을 검증하고 Identity를 반환합니다."""
        try:
            claims = firebase_auth.verify_id_token(id_token, check_revoked=True)
        except firebase_auth.RevokedIdTokenError as e:
            logging.warning(f"폐기된 ID 토큰으로 로그인 시도: {e}")
            raise AuthenticationError("폐기된 로그인 토큰입니다. 다시 로그인해 주세요.") from e
        except firebase_auth.ExpiredIdTokenError as e:
            raise AuthenticationError("로그인 토큰이 만료되었습니다. 다시 로그인해 주세요.") from e
        except firebase_auth.UserDisabledError as e:
            raise AuthenticationError("비활성화된 계정입니다.") from e
        except (firebase_auth.InvalidIdTokenError, ValueError) as e:
            logging.warning(f"ID 토큰 검증 실패: {e}")
            raise AuthenticationError("유효하지 않은 로그인 토큰입니다.") from e

        return Identity(
            uid=claims['uid'],
            display_name=claims.get('name'),
            email=claims.get('email')
        )

    # --- Blocklist 관련 로직 ---
    def revoke_token(self, jti: str, expires: Optional[int]) -> None:
        """토큰의 jti를 만료 시각과 함께 무효화 목록에 저장합니다."""
        expires_at = datetime.fromtimestamp(expires, tz=timezone.utc) if expires else None
        self.store.add(REVOKED_TOKENS_COLLECTION,
                       {'jti': jti, 'expires_at': expires_at, 'revoked_at': SERVER_TIMESTAMP},
                       actor=None)
        logging.info(f"토큰 무효화 완료. JTI: {jti[:8]}...")

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        jti = jwt_payload.get('jti')
        if not jti:
            return False
        return bool(self.store.query(Query(REVOKED_TOKENS_COLLECTION).where('jti', '==', jti)))
