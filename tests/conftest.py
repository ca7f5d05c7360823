import io

import pytest
from werkzeug.datastructures import FileStorage

from upload_controller import UploadController

JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"


def make_upload(data: bytes = JPEG_HEADER, filename: str = "scat.jpg",
                content_type: str | None = "image/jpeg") -> FileStorage:
    return FileStorage(stream=io.BytesIO(data), filename=filename, content_type=content_type)


class FakeAnalyzer:
    """Stands in for ai_client.call_ai and records every call."""

    def __init__(self, result: str = "1. Deer\n- Type: Pellets", error: Exception | None = None):
        self.result = result
        self.error  = error
        self.calls: list[dict] = []
        self.on_call = None

    def __call__(self, encoded_image, prompt, timeout=None):
        self.calls.append({"image": encoded_image, "prompt": prompt, "timeout": timeout})
        if self.on_call is not None:
            self.on_call()
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def default_image(tmp_path):
    path = tmp_path / "default-scat.jpg"
    path.write_bytes(JPEG_HEADER)
    return str(path)


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def controller(analyzer, default_image):
    ctrl = UploadController(analyze_fn=analyzer, default_image_path=default_image)
    ctrl.initialize()
    return ctrl
