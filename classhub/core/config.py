from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    PROJECT_NAME: str = "ClassHub"
    API_PREFIX: str = "/api"

    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    #Database
    DATABASE_URL: str
    DB_ECHO: bool = False

    #Attendance devices
    ATTENDANCE_DEVICE_KEY: Optional[str] = None
    ATTENDANCE_EDIT_WINDOW_HOURS: int = 24

    #Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: list = ["http://localhost:3000", "http://localhost:5173"]

    class Config:
        env_file = ".env"

settings = Settings()
