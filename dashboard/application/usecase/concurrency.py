import asyncio
from typing import Any, Awaitable

from dashboard.domain.errors import AuthenticationError


async def gather_settled(*awaitables: Awaitable[Any]) -> list[Any]:
    """
    모든 하위 조회가 끝날 때까지 기다린 뒤 결과를 돌려줍니다.
    하나라도 실패했다면 남은 작업이 모두 정리된 다음에 예외를 다시 올리며,
    인증 오류가 섞여 있으면 그것을 우선합니다.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    errors = [result for result in results if isinstance(result, BaseException)]
    if errors:
        raise next((error for error in errors if isinstance(error, AuthenticationError)), errors[0])
    return results
