"""Chapter audio service: best-effort text-to-speech for generated chapters."""

import logging
from typing import Callable, Optional

from models.chapter import Chapter
from tools.tts_client import SpeechClient

logger = logging.getLogger(__name__)

ChapterProgressCallback = Callable[[str, str], None]
OverallProgressCallback = Callable[[int, int], None]


class ChapterAudioService:
    """Generates chapter audio one chapter at a time.

    Tracks chapters currently being synthesized so the same chapter is
    never submitted twice concurrently.
    """

    def __init__(self, speech_client: SpeechClient):
        self.speech = speech_client
        self._in_flight: set[str] = set()

    def is_generating(self, chapter_id: str) -> bool:
        return chapter_id in self._in_flight

    async def generate_chapter_audio(self, chapter: Chapter) -> Optional[str]:
        """Synthesize one chapter. Returns the audio url, or None on failure."""
        if not chapter.content.strip():
            logger.info("Chapter %s has no content, skipping audio", chapter.id)
            return None
        if chapter.id in self._in_flight:
            logger.info("Audio for chapter %s already in progress", chapter.id)
            return None

        self._in_flight.add(chapter.id)
        try:
            url = await self.speech.synthesize(chapter.content)
        except Exception as e:
            logger.warning("Audio generation failed for chapter %s: %s", chapter.id, e)
            return None
        finally:
            self._in_flight.discard(chapter.id)

        logger.info("Audio ready for chapter %s: %s", chapter.id, url)
        return url

    async def generate_batch(
        self,
        chapters: list[Chapter],
        existing: Optional[dict[str, str]] = None,
        on_chapter_progress: Optional[ChapterProgressCallback] = None,
        on_overall_progress: Optional[OverallProgressCallback] = None,
    ) -> dict[str, str]:
        """Synthesize audio for each chapter in order.

        Args:
            chapters: Chapters to voice.
            existing: chapter_id -> url for chapters that already have audio.
            on_chapter_progress: Receives (chapter_id, state) where state is
                "skipped", "generating", "done" or "failed".
            on_overall_progress: Receives (processed, total); skipped
                chapters count as processed.

        Returns:
            chapter_id -> url for every chapter that has audio afterwards,
            including the ones in ``existing``.
        """
        results = dict(existing or {})
        total = len(chapters)

        for done, chapter in enumerate(chapters, start=1):
            skip = (
                chapter.id in results
                or not chapter.content.strip()
                or chapter.id in self._in_flight
            )
            if skip:
                if on_chapter_progress:
                    on_chapter_progress(chapter.id, "skipped")
            else:
                if on_chapter_progress:
                    on_chapter_progress(chapter.id, "generating")
                url = await self.generate_chapter_audio(chapter)
                if url:
                    results[chapter.id] = url
                if on_chapter_progress:
                    on_chapter_progress(chapter.id, "done" if url else "failed")

            if on_overall_progress:
                on_overall_progress(done, total)

        logger.info("Audio batch finished: %d/%d chapters have audio", len(results), total)
        return results
