# blog_app/utils/sse.py
"""Server-Sent Events 직렬화 도우미."""

import json
from typing import Any, Callable, Iterator, Optional

from blog_app.services.subscription_service import Subscription


def format_event(data: Any, event: Optional[str] = None, event_id: Optional[int] = None) -> str:
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    if event:
        lines.append(f"event: {event}")
    payload = json.dumps(data, ensure_ascii=False)
    lines.extend(f"data: {line}" for line in payload.splitlines())
    return "\n".join(lines) + "\n\n"


KEEPALIVE = ": keepalive\n\n"


def stream_snapshots(subscribe: Callable[[], Subscription], render: Callable[[list], Any],
                     event: str, keepalive: Optional[float]) -> Iterator[str]:
    """
    구독에서 나오는 스냅샷을 SSE 이벤트로 바꿔 내보냅니다.
    구독은 본문을 처음 읽을 때 엽니다. HEAD처럼 본문을 읽지 않는 응답은 구독을 만들지 않습니다.
    클라이언트 연결이 끊기면(제너레이터 close) finally에서 구독을 해제합니다.
    """
    subscription = subscribe()
    try:
        for snapshot in subscription.iter_snapshots(keepalive=keepalive):
            if snapshot is None:
                yield KEEPALIVE
                continue
            yield format_event(render(snapshot), event=event, event_id=subscription.delivery_count)
    finally:
        subscription.unsubscribe()
