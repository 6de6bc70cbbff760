"""
resume manager module that assembles the grounding context for the chat
pulls the active resume and the profile from the store, extracts the resume
text and hands back one immutable bundle, or tells the caller why it cant
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from errors import ContextFetchError, normalize_error
from resume_processor import ResumeProcessor, validate_github_url, validate_upload
from resume_store import ResumeStore

logger = logging.getLogger(__name__)

NO_RESUME_MESSAGE = (
    "Welcome! No resume has been uploaded yet. An administrator needs to "
    "log in and upload a resume to get started."
)


@dataclass(frozen=True)
class ContextBundle:
    """
    grounding text given to the model
    an empty resume_text is a valid "nothing loaded yet" bundle
    """
    resume_text: str = ""
    linkedin_about: str = ""
    github_url: str = ""


@dataclass(frozen=True)
class NoResumeYet:
    """nobody has uploaded a resume, this is not an error"""
    message: str = NO_RESUME_MESSAGE


class ResumeManager:
    """
    owns the store and the processor it extracts with
    refresh() is the only way a ContextBundle gets built
    """

    def __init__(self, store: ResumeStore, processor: Optional[ResumeProcessor] = None,
                 max_upload_bytes: int = 5 * 1024 * 1024):
        self.store = store
        self.processor = processor or ResumeProcessor()
        self.max_upload_bytes = max_upload_bytes

    def _fetch_error(self, step: str, error: Exception) -> ContextFetchError:
        # the raw value is for the logs only, the visitor gets the normalized text
        logger.error("context fetch failed during %s: %r", step, error)
        return ContextFetchError(normalize_error(error))

    def _load_profile(self) -> Tuple[str, str]:
        """
        a broken profile must not block the resume answers, so any failure
        here is logged and the fields stay empty
        """
        try:
            profile = self.store.get_profile()
        except Exception as e:
            logger.error("error fetching profile: %s", normalize_error(e))
            return "", ""
        if not profile:
            return "", ""
        return profile.get("linkedin_about") or "", profile.get("github_url") or ""

    def refresh(self) -> Union[ContextBundle, NoResumeYet]:
        """
        runs the whole assembly in order: latest resume record, download,
        extraction, profile lookup
        returns NoResumeYet when there is nothing to load and raises
        ContextFetchError with a display-ready message for everything else
        """
        try:
            record = self.store.latest_resume()
        except Exception as e:
            raise self._fetch_error("resume lookup", e) from e

        if not record or not record.get("file_url"):
            logger.info("no resume uploaded yet")
            return NoResumeYet()

        file_url = record["file_url"]
        try:
            content = self.store.download(file_url)
        except Exception as e:
            raise self._fetch_error("download", e) from e

        if not content:
            raise ContextFetchError("Downloaded resume file is empty.")

        try:
            resume_text = self.processor.extract_file(content, file_url)
        except Exception as e:
            raise self._fetch_error("extraction", e) from e

        linkedin_about, github_url = self._load_profile()
        logger.info("context loaded from %s (%d chars)", file_url, len(resume_text))
        return ContextBundle(
            resume_text=resume_text,
            linkedin_about=linkedin_about,
            github_url=github_url,
        )

    def upload_resume(self, filename: str, content: bytes, mime_type: str) -> str:
        """
        validates and stores a new resume, making it the only active one
        raises UploadValidationError before touching the store when the
        file is too big or of the wrong type
        """
        validate_upload(filename, len(content), mime_type, self.max_upload_bytes)
        return self.store.upload_resume(filename, content)

    def save_profile(self, profile_id: str, linkedin_about: str, github_url: str) -> None:
        validate_github_url(github_url)
        self.store.save_profile(profile_id, linkedin_about, github_url)
