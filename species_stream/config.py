from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Backend
    backend_url: str = "http://localhost:8000"
    access_token: str = ""
    refresh_token: str = ""

    # Streaming
    stream_timeout_seconds: float = 300.0  # read timeout between chunks
    stream_connect_timeout_seconds: float = 10.0
    default_location_name: str = "Current Location"  # placeholder until the user picks one

    # App
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_to_file: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def base_url(self) -> str:
        return self.backend_url.rstrip("/")


settings = Settings()
