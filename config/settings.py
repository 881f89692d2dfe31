import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class DashboardSettings:
    timezone: str = os.getenv("DASHBOARD_TIMEZONE", "Asia/Taipei")
    report_lag_days: int = int(os.getenv("DASHBOARD_REPORT_LAG_DAYS", "3"))
    max_ids_per_request: int = int(os.getenv("DASHBOARD_MAX_IDS_PER_REQUEST", "50"))
    top_n: int = int(os.getenv("DASHBOARD_TOP_N", "10"))
    bottom_n: int = int(os.getenv("DASHBOARD_BOTTOM_N", "10"))
    # 폴백 모드 시청 시간 추정치: 평균 영상 길이 10분, 시청 완료율 40% 가정
    assumed_avg_video_minutes: float = float(os.getenv("DASHBOARD_ASSUMED_VIDEO_MINUTES", "10"))
    assumed_view_completion: float = float(os.getenv("DASHBOARD_ASSUMED_VIEW_COMPLETION", "0.4"))
    short_form_max_seconds: int = int(os.getenv("DASHBOARD_SHORT_FORM_MAX_SECONDS", "60"))


@dataclass
class YouTubeSettings:
    quota_user: str | None = os.getenv("YOUTUBE_QUOTA_USER")
    catalog_max_videos: int = int(os.getenv("YOUTUBE_CATALOG_MAX_VIDEOS", "10000"))
