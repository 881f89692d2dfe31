from datetime import date
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from config.settings import DashboardSettings
from dashboard.adapter.input.web.request.dashboard_requests import (
    FetchDashboardRequest,
    TopVideoMetricRequest,
    UpdateFiltersRequest,
)
from dashboard.application.usecase.dashboard_session import DashboardSession
from dashboard.application.usecase.dashboard_usecase import DashboardUseCase
from dashboard.application.usecase.result_cache_usecase import ResultCache
from dashboard.domain.errors import AuthenticationError, DashboardBusyError, RangeNotQueryableError
from dashboard.domain.period import (
    DateRange,
    latest_queryable_date,
    quick_range_options,
    reference_today,
    resolve_quick_range,
)
from dashboard.domain.snapshot import DashboardState, FilterPreferences
from dashboard.infrastructure.client.youtube_analytics_client import YouTubeAnalyticsClient
from dashboard.infrastructure.client.youtube_catalog_client import YouTubeCatalogClient
from dashboard.infrastructure.repository.dashboard_store_impl import DashboardStoreImpl

dashboard_router = APIRouter(tags=["dashboard"])

# 채널별 세션/유즈케이스 레지스트리와 결과 저장소 싱글턴
settings = DashboardSettings()
result_cache = ResultCache(DashboardStoreImpl())
sessions: dict[str, DashboardSession] = {}
usecases: dict[str, tuple[str, DashboardUseCase]] = {}


def get_session(channel_id: str) -> DashboardSession:
    if channel_id not in sessions:
        sessions[channel_id] = DashboardSession(channel_id)
    return sessions[channel_id]


def build_usecase(session: DashboardSession, access_token: str) -> DashboardUseCase:
    reports = YouTubeAnalyticsClient(access_token, channel_id=session.channel_id, quota=session.quota)
    catalog = YouTubeCatalogClient(access_token, channel_id=session.channel_id, quota=session.quota)
    return DashboardUseCase(session, reports, catalog, result_cache, settings)


def get_usecase(channel_id: str, access_token: str) -> DashboardUseCase:
    cached = usecases.get(channel_id)
    if cached is not None and cached[0] == access_token:
        return cached[1]
    # 토큰이 바뀌면 클라이언트만 새로 만들고 세션(소스 모드, 상태)은 유지한다.
    usecase = build_usecase(get_session(channel_id), access_token)
    usecases[channel_id] = (access_token, usecase)
    return usecase


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization 헤더가 필요합니다.")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Bearer 토큰 형식이 아닙니다.")
    return token.strip()


def state_payload(session: DashboardSession, state: DashboardState) -> dict:
    return {
        "channel_id": session.channel_id,
        "source_mode": session.source_mode,
        "is_estimate": state.aggregate.is_estimate if state.aggregate else False,
        "mode_events": session.mode_events,
        "state": state,
    }


@dashboard_router.get("/quick-ranges")
async def get_quick_ranges(today: date | None = Query(default=None, description="기준 날짜 (기본: 기준 시간대의 오늘)")):
    """
    빠른 기간 프리셋 목록과 선택 가능 여부를 조회한다.
    """
    today = today or reference_today(settings.timezone)
    options = quick_range_options(today, settings.report_lag_days, settings.timezone)
    return JSONResponse(
        jsonable_encoder(
            {
                "today": today,
                "latest_queryable_date": latest_queryable_date(today, settings.report_lag_days),
                "options": options,
            }
        )
    )


@dashboard_router.post("/{channel_id}/fetch")
async def fetch_dashboard(
    channel_id: str,
    request: FetchDashboardRequest,
    authorization: str | None = Header(default=None),
):
    """
    선택한 기간의 대시보드 데이터를 조회한다. 진행 중인 조회가 있으면 409.
    """
    token = bearer_token(authorization)
    try:
        if request.preset is not None:
            date_range = resolve_quick_range(request.preset, None, settings.report_lag_days, settings.timezone)
        elif request.start_date and request.end_date:
            date_range = DateRange(request.start_date, request.end_date)
        else:
            raise HTTPException(status_code=422, detail="preset 또는 start_date/end_date가 필요합니다.")

        usecase = get_usecase(channel_id, token)
        if request.refresh:
            state = await usecase.refresh(date_range, request.top_video_metric)
        else:
            state = await usecase.fetch_dashboard_data(date_range, request.top_video_metric)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except DashboardBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (RangeNotQueryableError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result_cache.save_filters(FilterPreferences(date_range=date_range, top_video_metric=request.top_video_metric))
    return JSONResponse(jsonable_encoder(state_payload(usecase.session, state)))


@dashboard_router.get("/{channel_id}/snapshot")
async def get_snapshot(channel_id: str):
    """
    마지막으로 저장된 결과를 조회한다. 다른 채널의 결과는 버리고 404.
    """
    session = get_session(channel_id)
    session.apply_hydration(result_cache.hydrate(channel_id))
    if session.state.is_empty:
        raise HTTPException(status_code=404, detail="저장된 대시보드 결과가 없습니다.")
    return JSONResponse(jsonable_encoder(state_payload(session, session.state)))


@dashboard_router.put("/{channel_id}/top-video-metric")
async def update_top_video_metric(channel_id: str, request: TopVideoMetricRequest):
    cached = usecases.get(channel_id)
    if cached is None or cached[1].session.state.date_range is None:
        raise HTTPException(status_code=404, detail="먼저 대시보드를 조회해야 합니다.")
    state = cached[1].select_top_video_metric(request.metric)
    return JSONResponse(jsonable_encoder({"top_video_metric": state.top_video_metric, "top_videos": state.top_videos}))


@dashboard_router.get("/filters")
async def get_filters():
    return JSONResponse(jsonable_encoder(result_cache.load_filters()))


@dashboard_router.put("/filters")
async def update_filters(request: UpdateFiltersRequest):
    date_range = None
    if request.start_date and request.end_date:
        try:
            date_range = DateRange(request.start_date, request.end_date)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
    filters = FilterPreferences(date_range=date_range, top_video_metric=request.top_video_metric)
    result_cache.save_filters(filters)
    return JSONResponse(jsonable_encoder(filters))


@dashboard_router.get("/{channel_id}/quota")
async def get_quota(channel_id: str):
    """
    세션에서 사용한 API 할당량 추정치를 조회한다.
    """
    return JSONResponse(jsonable_encoder({"channel_id": channel_id, **get_session(channel_id).quota.snapshot()}))
