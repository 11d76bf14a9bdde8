from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./ats_forms.db"

    # File storage config ("local" or "s3")
    storage_backend: str = "local"
    upload_dir: str = "./uploads"
    max_upload_bytes: int = 5 * 1024 * 1024
    allowed_upload_types: list[str] = [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    # MinIO config for the s3 backend
    minio_endpoint: str = "http://minio:9000"
    minio_access_key: str = "ats"
    minio_secret_key: str = "ats-secret-key"
    minio_bucket: str = "ats-uploads"

    # Used to build absolute download links in classified profiles
    public_base_url: str = "http://localhost:8000"

    class Config:
        env_file = ".env"


settings = Settings()
