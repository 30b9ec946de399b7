"""
Configuration settings for the model upload server
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings"""
    
    # Storage areas
    UPLOAD_ROOT: str = os.getenv("UPLOAD_ROOT", "./uploads")
    TEMP_UPLOAD_DIR: str = os.getenv("TEMP_UPLOAD_DIR", os.path.join(UPLOAD_ROOT, "tmp"))
    MODELS_DIR: str = os.getenv("MODELS_DIR", os.path.join(UPLOAD_ROOT, "models"))
    
    # Session records
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{os.path.join(UPLOAD_ROOT, 'sessions.db')}"
    )
    
    # Stored asset format
    ASSET_EXTENSION: str = os.getenv("ASSET_EXTENSION", "glb")
    ASSET_CONTENT_TYPE: str = os.getenv("ASSET_CONTENT_TYPE", "model/gltf-binary")
    ASSET_CACHE_CONTROL: str = os.getenv(
        "ASSET_CACHE_CONTROL",
        "public, max-age=31536000, immutable"
    )
    MAX_CHUNK_BYTES: int = int(os.getenv("MAX_CHUNK_BYTES", str(64 * 1024 * 1024)))
    
    # Post-processing
    ENABLE_DECOMPRESSION: bool = _env_bool("ENABLE_DECOMPRESSION", "true")
    ENABLE_OPTIMIZATION: bool = _env_bool("ENABLE_OPTIMIZATION", "true")
    OPTIMIZER_COMMAND: str = os.getenv(
        "OPTIMIZER_COMMAND",
        "gltf-pipeline -i {input} -o {output} -d"
    )
    OPTIMIZER_TIMEOUT: float = float(os.getenv("OPTIMIZER_TIMEOUT", "120"))
    
    # Server
    SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    SERVER_PORT: int = int(os.getenv("SERVER_PORT", "3000"))
    CORS_ORIGINS: list[str] = [
        origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
    ]
    
    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    
    # Application
    APP_TITLE: str = "Model Store"
    APP_DESCRIPTION: str = "Chunked 3D model uploads with reassembly, optimization and serving"
    APP_VERSION: str = "1.0.0"


settings = Settings()
