import logging
import pathlib

from huggingface_hub import hf_hub_download
from huggingface_hub.errors import HfHubHTTPError

from .errors import ModelLoadError
from .utils.config import Config

logger = logging.getLogger(__name__)


def resolve_model_path(config: Config) -> str:
    """Work out which GGUF file to load.

    An explicit ``MODEL_PATH`` always wins. Otherwise, when ``MODEL_REPO_ID``
    and ``MODEL_FILENAME`` are set, the file is taken from the local cache or
    downloaded from Hugging Face. Returns "" when nothing is configured, which
    leaves the agent uninitialized rather than failing.

    Raises:
        ModelLoadError: If the download fails.
    """
    if config.MODEL_PATH and config.MODEL_PATH.strip():
        return str(pathlib.Path(config.MODEL_PATH).expanduser())

    repo_id = config.MODEL_REPO_ID
    filename = config.MODEL_FILENAME
    if not repo_id or not filename:
        if repo_id or filename:
            logger.warning("Both MODEL_REPO_ID and MODEL_FILENAME are needed to fetch a GGUF model")
        return ""

    model_repo_cache_dir = pathlib.Path(config.MODEL_CACHE_DIR).expanduser() / repo_id
    local_model_path = model_repo_cache_dir / filename
    if local_model_path.is_file():
        logger.debug(f"Found cached GGUF model file: {local_model_path}")
        return str(local_model_path)

    logger.info(f"Downloading '{filename}' from repo '{repo_id}'...")
    model_repo_cache_dir.mkdir(parents=True, exist_ok=True)
    try:
        downloaded_path_str = hf_hub_download(repo_id=repo_id, filename=filename, local_dir=str(model_repo_cache_dir))
    except HfHubHTTPError as e:
        raise ModelLoadError(f"{repo_id}/{filename}", f"download from Hugging Face failed: {e}") from e
    except Exception as e:
        raise ModelLoadError(f"{repo_id}/{filename}", f"error downloading file: {e}") from e

    if pathlib.Path(downloaded_path_str) != local_model_path:
        logger.warning(f"Download path {downloaded_path_str} differs from expected cache path {local_model_path}. Using downloaded path.")
    logger.debug(f"GGUF download complete: {downloaded_path_str}")
    return downloaded_path_str
