"""Cover image generation: submit a text-to-image task and poll for the result."""

import logging
from typing import Callable, Optional

from config.exceptions import MalformedResponseError
from models.enums import TaskState
from models.task import GenerationTask, normalize_image_status
from tools.task_client import TaskApiClient, _as_float

logger = logging.getLogger(__name__)

COVER_MAX_ATTEMPTS = 30
COVER_POLL_INTERVAL = 3.0

_GENRE_STYLES = {
    "玄幻": "仙侠玄幻风格，云雾缭绕，仙山楼阁，金光闪闪",
    "都市": "现代都市风格，高楼大厦，霓虹灯光，时尚现代",
    "历史": "古代历史风格，古典建筑，传统服饰，水墨画风",
    "科幻": "未来科幻风格，太空场景，机械科技，蓝色光效",
    "武侠": "武侠江湖风格，山水意境，刀剑武器，中国风",
    "言情": "浪漫唯美风格，樱花飞舞，温馨色调，梦幻氛围",
    "悬疑": "神秘悬疑风格，阴暗色调，迷雾重重，紧张氛围",
    "奇幻": "奇幻魔法风格，魔法光效，神秘符文，梦幻色彩",
}
_DEFAULT_STYLE = "精美插画风格，色彩丰富，构图精美"

# sub_task_error_code reported for rejected prompts
_CONTENT_VIOLATION_CODE = "501"


def build_cover_prompt(title: str, genre: str, description: str = "") -> str:
    """Build the text-to-image prompt for a novel cover."""
    style = _GENRE_STYLES.get(genre, _DEFAULT_STYLE)
    return (
        f"小说封面设计，标题：{title}，{style}，国漫风格，精美插画，"
        f"高质量，专业设计，书籍封面，竖版构图，9:16"
    )


def _first_image_url(data: dict) -> Optional[str]:
    try:
        return data["sub_task_result_list"][0]["final_image_list"][0]["img_url"] or None
    except (KeyError, IndexError, TypeError):
        return None


def _failure_message(data: dict) -> str:
    try:
        code = str(data["sub_task_result_list"][0].get("sub_task_error_code", ""))
    except (KeyError, IndexError, TypeError, AttributeError):
        code = ""
    if code == _CONTENT_VIOLATION_CODE:
        return "内容违规，请修改描述"
    return "图片生成失败"


class CoverClient(TaskApiClient):
    """Client for the text-to-image task API."""

    async def submit(self, prompt: str) -> str:
        """Submit a generation task and return its task id."""
        data = await self._post(self.settings.cover_submit_endpoint, {"prompt": prompt})
        task_id = data.get("task_id")
        if not task_id:
            raise MalformedResponseError("Image submit response has no task_id", raw_response=str(data))
        logger.info("Cover task submitted: %s", task_id)
        return str(task_id)

    async def query(self, task_id: str) -> GenerationTask:
        data = await self._post(self.settings.cover_query_endpoint, {"task_id": task_id})
        state = normalize_image_status(data.get("task_status"))
        task = GenerationTask(
            task_id=task_id,
            state=state,
            progress=_as_float(data.get("task_progress_detail")),
        )
        if state is TaskState.SUCCEEDED:
            task.result_url = _first_image_url(data)
        elif state is TaskState.FAILED:
            task.error = _failure_message(data)
        return task

    async def poll_until_done(
        self,
        task_id: str,
        max_attempts: int = COVER_MAX_ATTEMPTS,
        interval: float = COVER_POLL_INTERVAL,
        on_progress: Optional[Callable[[GenerationTask], None]] = None,
    ) -> str:
        """Wait for the task and return the first generated image url."""
        return await self._poll(task_id, max_attempts, interval, on_progress)

    async def generate_cover(self, title: str, genre: str, description: str = "") -> str:
        """Submit a cover task for a novel and wait for the image url."""
        prompt = build_cover_prompt(title, genre, description)
        task_id = await self.submit(prompt)
        url = await self.poll_until_done(task_id)
        logger.info("Cover generated for '%s': %s", title, url)
        return url
