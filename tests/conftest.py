import pytest

from xray_insight.config import AppSettings, UploadSettings, VisionSettings
from xray_insight.imaging.vision import HuggingFaceVisionClient


def digest_for_seed(seed: int) -> str:
    """A 64-char digest whose first 32 bits are `seed`."""
    return f"{seed:08x}" + "0" * 56


class FakeResponse:
    def __init__(self, status_code=200, payload=None, raise_json=False):
        self.status_code = status_code
        self.payload = payload
        self.raise_json = raise_json

    def json(self):
        if self.raise_json:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSession:
    """Replays canned responses (or raises canned exceptions) in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSleep:
    def __init__(self):
        self.waits = []

    def __call__(self, seconds):
        self.waits.append(seconds)


@pytest.fixture
def vision_settings():
    return VisionSettings()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def settings(tmp_path):
    return AppSettings(uploads=UploadSettings(directory=str(tmp_path / "uploads")))


@pytest.fixture
def offline_client(vision_settings):
    """A vision client without credentials: every analysis takes the hash fallback."""
    return HuggingFaceVisionClient(None, vision_settings, session=FakeSession([]))
