"""
Name validation shared by session ids, client file names and asset names.

Every name here ends up as a single path component under one of the storage
areas, so anything that could escape that directory is rejected before the
filesystem is touched.
"""
from ..core.errors import InvalidInput

MAX_NAME_LENGTH = 200
MAX_SESSION_ID_LENGTH = 128  # upload_sessions.session_id column width
MODEL_EXTENSIONS = (".gz", ".glb", ".gltf")


def validate_name(value, field: str, max_length: int = MAX_NAME_LENGTH) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required")
    if "/" in value or "\\" in value or ".." in value or "\x00" in value:
        raise InvalidInput(f"{field} must not contain path separators or '..'")
    if value.startswith("."):
        raise InvalidInput(f"{field} must not start with '.'")
    if len(value) > max_length:
        raise InvalidInput(f"{field} is longer than {max_length} characters")
    return value


def validate_session_id(value) -> str:
    return validate_name(value, "fileId", max_length=MAX_SESSION_ID_LENGTH)


def derive_base_name(file_name) -> str:
    """
    Turn a client file name into the logical asset base name.
    
    "scene.glb.gz" -> "scene", "Robot Arm.GLB" -> "Robot Arm", "scene" -> "scene"
    """
    base = validate_name(file_name.strip() if isinstance(file_name, str) else file_name, "fileName")
    stripped = True
    while stripped:
        stripped = False
        for extension in MODEL_EXTENSIONS:
            if base.lower().endswith(extension):
                base = base[: -len(extension)].rstrip()
                stripped = True
    if not base:
        raise InvalidInput("fileName has no base name")
    return base
