# backend/Storage/database.py
import os
from sqlmodel import SQLModel, create_engine, Session
from dotenv import load_dotenv
load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dashboard.db")
engine = create_engine(
    DATABASE_URL, echo=False, connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

def init_db() -> None:
    # tables only exist once their models are imported
    import Auth.models  # noqa: F401
    import Dashboard.models  # noqa: F401
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session
