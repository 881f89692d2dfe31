import asyncio
from typing import Any, Optional

import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.errors import HttpError
from loguru import logger

from dashboard.domain.errors import AuthenticationError
from dashboard.domain.quota import QuotaTracker


def bearer_credentials(access_token: str) -> Credentials:
    if not access_token:
        raise AuthenticationError("Access token is required")
    return Credentials(token=access_token)


async def execute_request(
    request: Any,
    credentials: Credentials,
    action: str,
    quota: Optional[QuotaTracker] = None,
    **details,
) -> dict:
    """
    googleapiclient 요청을 워커 스레드에서 실행한다.
    httplib2.Http는 스레드 안전하지 않으므로 요청마다 새 전송 객체를 만든다.
    """
    if quota is not None:
        quota.record(action, **details)
    http = AuthorizedHttp(credentials, http=httplib2.Http())
    try:
        return await asyncio.to_thread(request.execute, http=http)
    except RefreshError as exc:
        raise AuthenticationError(f"{action} rejected the access token: {exc}") from exc
    except HttpError as exc:
        status = getattr(exc.resp, "status", None)
        if status is not None and int(status) == 401:
            raise AuthenticationError(f"{action} rejected the access token") from exc
        logger.debug("[google] {} failed with status {}", action, status)
        raise RuntimeError(f"{action} failed: {exc}") from exc
