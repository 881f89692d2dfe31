import os
import urllib.parse

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()

# DATABASE_URL이 있으면 우선 사용하고, 없으면 SQL_* 환경변수로 PostgreSQL 접속 URL을 조합합니다.
password = urllib.parse.quote_plus(os.getenv("SQL_PASSWORD", ""))

DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"postgresql+psycopg2://{os.getenv('SQL_USER','postgres')}:{password}"
    f"@{os.getenv('SQL_HOST','localhost')}:{os.getenv('SQL_PORT','5432')}/{os.getenv('SQL_DATABASE','channel_insights')}"
)

engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db_schema():
    """
    애플리케이션 기동 시 대시보드 저장 테이블이 없을 경우를 대비해 스키마를 생성합니다.
    """
    # ORM 모델을 import 해야 Base.metadata에 테이블이 등록됩니다.
    import dashboard.infrastructure.orm.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
