import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import examdesk
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from examdesk.config import StoreConfig
from examdesk.storage import DocumentStore, ImageStore, IntegrityManager
from examdesk.service import ExamDeskService


# Common test fixtures
@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Return an (unbootstrapped) data root inside tmp_path."""
    return tmp_path / "data"


@pytest.fixture
def config(data_root: Path) -> StoreConfig:
    return StoreConfig(data_root=data_root)


@pytest.fixture
def integrity(config: StoreConfig) -> IntegrityManager:
    return IntegrityManager(config)


@pytest.fixture
def store(config: StoreConfig) -> DocumentStore:
    """Document store without first-touch verification."""
    return DocumentStore(config)


@pytest.fixture
def images(config: StoreConfig) -> ImageStore:
    return ImageStore(config)


@pytest.fixture
def service(config: StoreConfig) -> ExamDeskService:
    """Bootstrapped service."""
    svc = ExamDeskService(config)
    assert svc.bootstrap().success
    return svc


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Create a small PNG in memory."""
    img = Image.new("RGB", (20, 10), color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()

