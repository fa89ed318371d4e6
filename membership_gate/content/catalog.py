"""
Read-only lesson catalog.

Lesson records are produced by the content pipeline and consumed here only to
look up the category and sample flag that gate a lesson.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from ..permissions.models import SampleFlag, VideoSection, parse_sample_flag

logger = logging.getLogger(__name__)


@dataclass
class LessonRecord:
    """The gating-relevant part of a lesson."""
    id: str
    section: Optional[VideoSection]
    sample_flag: SampleFlag = False
    title_en: str = ""
    title_cn: str = ""
    transcript: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "LessonRecord":
        return cls(
            id=str(data["id"]),
            section=VideoSection.parse(data.get("category")),
            sample_flag=parse_sample_flag(data.get("isSample", False)),
            title_en=data.get("titleEn", ""),
            title_cn=data.get("titleCn", ""),
            transcript=data.get("transcript", ""),
        )

    def video_context(self) -> dict:
        """Scene context handed to the chat completion prompt."""
        return {
            "title": self.title_en,
            "titleCn": self.title_cn,
            "transcript": self.transcript,
        }


class LessonCatalog:
    """Lesson records loaded from a JSON file (a list or an id-keyed object)."""

    def __init__(self, lessons_file: Path):
        self.lessons_file = lessons_file
        self._lock = Lock()
        self._lessons: Dict[str, LessonRecord] = {}
        self.reload()

    def reload(self) -> int:
        """Reload lessons from file. Returns the number of lessons loaded."""
        lessons = self._load_file()
        with self._lock:
            self._lessons = lessons
        return len(lessons)

    def _load_file(self) -> Dict[str, LessonRecord]:
        if not self.lessons_file.exists():
            logger.info(f"No lesson catalog at {self.lessons_file}")
            return {}

        try:
            with open(self.lessons_file, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error loading lesson catalog: {e}")
            return {}

        items: List[dict] = list(raw.values()) if isinstance(raw, dict) else list(raw)
        lessons = {}
        for item in items:
            try:
                record = LessonRecord.from_dict(item)
            except (KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed lesson record: {e}")
                continue
            lessons[record.id] = record
        return lessons

    def get(self, lesson_id: str) -> Optional[LessonRecord]:
        with self._lock:
            return self._lessons.get(lesson_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lessons)
