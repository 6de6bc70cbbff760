from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from resume_manager import ResumeManager


def make_chunk(text):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def make_stream_client(*fragments):
    """openai client whose chat.completions.create streams the given fragments"""
    client = MagicMock()
    client.chat.completions.create.side_effect = lambda **kwargs: iter(
        [make_chunk(f) for f in fragments]
    )
    return client


class FakeStore:
    def __init__(self, record=None, files=None, profile=None):
        self.record = record
        self.files = files or {}
        self.profile = profile
        self.lookup_error = None
        self.download_error = None
        self.profile_error = None

    def latest_resume(self):
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.record

    def download(self, file_url):
        if self.download_error is not None:
            raise self.download_error
        return self.files[file_url]

    def get_profile(self, profile_id=None):
        if self.profile_error is not None:
            raise self.profile_error
        return self.profile


@pytest.fixture
def fake_store():
    return FakeStore(
        record={"file_url": "resume_1.txt", "active": 1},
        files={"resume_1.txt": b"Jane Doe\nPython engineer since 2015"},
        profile={"linkedin_about": "I build data tools.", "github_url": "https://github.com/janedoe"},
    )


@pytest.fixture
def manager(fake_store):
    return ResumeManager(fake_store)
